"""Profile domain exceptions."""

from opsdesk.core.exceptions import AppException, NotFoundError


class ProfileNotFoundError(NotFoundError):
    """Raised when a profile id does not exist."""

    error_type = "profile_not_found"

    def __init__(self, message: str = "Profile not found"):
        super().__init__(message)


class ProfileLookupError(AppException):
    """Raised when the profiles table cannot be read or written."""

    status_code = 503
    error_type = "profile_error"

    def __init__(self, message: str = "Unable to load user profile"):
        super().__init__(message)


class EmailNotConfirmedError(AppException):
    """Raised when a profile is requested for an unconfirmed email."""

    status_code = 403
    error_type = "email_not_confirmed"

    def __init__(
        self,
        message: str = (
            "Email not confirmed. "
            "Please check your email and click the confirmation link."
        ),
    ):
        super().__init__(message)
