"""Access gate exceptions."""

from opsdesk.access.models import ERROR_MESSAGES, AccessError, AccessVerdict
from opsdesk.core.exceptions import AppException

_UNAUTHENTICATED = {AccessError.no_session, AccessError.session_error}


class NoSessionError(AppException):
    """Raised when no session can be found after the settle retry."""

    status_code = 401
    error_type = AccessError.no_session.value

    def __init__(self, message: str = ERROR_MESSAGES[AccessError.no_session]):
        super().__init__(message)


class SessionProviderError(AppException):
    """Raised when the auth provider rejects or fails a session lookup."""

    status_code = 401
    error_type = AccessError.session_error.value

    def __init__(self, message: str = "Session lookup failed"):
        super().__init__(message)


class AccessDeniedError(AppException):
    """Raised by route dependencies when a verdict does not allow access.

    Status, type and message all come from the verdict.
    """

    def __init__(self, verdict: AccessVerdict):
        self.verdict = verdict
        error = verdict.error or AccessError.unknown
        self.error_type = error.value
        self.status_code = 401 if error in _UNAUTHENTICATED else 403
        super().__init__(verdict.message or ERROR_MESSAGES[error])

    def log_context(self) -> dict[str, str]:
        context = {"access_error": self.error_type}
        if self.verdict.identity is not None:
            context["user_id"] = self.verdict.identity.id
        return context
