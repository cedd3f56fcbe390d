"""Edge Filter: coarse session check in front of protected pages.

Only presence and validity of the session cookie are checked here; role
and approval status are left to the guard that the page hosts.
"""

import logging

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from opsdesk.auth.exceptions import SessionCookieError
from opsdesk.auth.service import get_firebase_auth_service
from opsdesk.core.constants import SESSION_COOKIE_NAME
from opsdesk.core.settings import get_settings
from opsdesk.profile.models import ProfileRole

logger = logging.getLogger(__name__)

PUBLIC_ROUTES: tuple[str, ...] = (
    "/",
    "/auth/login",
    "/auth/registration",
    "/auth/oauth/callback",
    "/api/sendEmail",
)

# Protected page sections and the role each requires (None: any approved user).
PROTECTED_ROUTES: dict[str, ProfileRole | None] = {
    "/multifactors": None,
    "/multifactors/account-approval": ProfileRole.admin,
    "/ruijie": None,
    "/tuya": None,
}


def _matches(path: str, route: str) -> bool:
    if route == "/":
        return path == "/"
    return path == route or path.startswith(route + "/")


def is_public_route(path: str) -> bool:
    return any(_matches(path, route) for route in PUBLIC_ROUTES)


def is_protected_route(path: str) -> bool:
    if is_public_route(path):
        return False
    return any(_matches(path, route) for route in PROTECTED_ROUTES)


def get_required_role(path: str) -> ProfileRole | None:
    """Role required by the most specific protected route covering ``path``."""
    best: str | None = None
    for route in PROTECTED_ROUTES:
        if _matches(path, route) and (best is None or len(route) > len(best)):
            best = route
    return PROTECTED_ROUTES[best] if best is not None else None


class EdgeFilterMiddleware(BaseHTTPMiddleware):
    """Redirect requests for protected paths that carry no valid session."""

    def __init__(self, app: FastAPI, landing_route: str = "/") -> None:
        super().__init__(app)
        self.landing_route = landing_route

    def _redirect(self, request: Request, reason: str) -> Response:
        logger.info(
            "Edge filter redirect for %s: %s",
            request.url.path,
            reason,
            extra={"path": request.url.path},
        )
        return RedirectResponse(self.landing_route, status_code=307)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not is_protected_route(request.url.path):
            return await call_next(request)

        session_cookie = request.cookies.get(SESSION_COOKIE_NAME)
        if not session_cookie:
            return self._redirect(request, "no session cookie")

        firebase_auth = get_firebase_auth_service()
        try:
            await run_in_threadpool(
                firebase_auth.verify_session_cookie, session_cookie, False
            )
        except SessionCookieError:
            return self._redirect(request, "invalid session")
        except Exception:
            logger.exception("Session verification failed at the edge")
            return self._redirect(request, "verification error")

        return await call_next(request)


def add_edge_filter_middleware(app: FastAPI) -> None:
    app.add_middleware(
        EdgeFilterMiddleware, landing_route=get_settings().landing_route
    )
