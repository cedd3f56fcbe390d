import logging
import secrets

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from opsdesk.core.settings import get_settings

logger = logging.getLogger(__name__)


class AdminAuth(AuthenticationBackend):
    """Console login against the configured operator credentials.

    The console is for operators and is separate from the ``admin`` profile
    role, which governs the application itself.
    """

    def __init__(self) -> None:
        settings = get_settings()
        super().__init__(secret_key=settings.session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username", "")).strip()
        password = str(form.get("password", ""))

        settings = get_settings()
        ok = secrets.compare_digest(
            username, settings.admin_username
        ) and secrets.compare_digest(password, settings.admin_password)
        if not ok:
            logger.info("Admin console login failed for %r", username)
            return False
        request.session["console_user"] = username
        return True

    async def logout(self, request: Request) -> bool:
        request.session.pop("console_user", None)
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get("console_user"))
