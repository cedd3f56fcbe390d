"""Auth domain exceptions.

Errors raised while talking to the auth provider.
"""

from opsdesk.core.exceptions import (
    AppException,
    ConflictError,
    NotFoundError,
    ValidationError,
)


# Authentication errors (401)
class AuthenticationError(AppException):
    """Base class for authentication failures."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Raised when email/password combination is invalid."""

    error_type = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when an ID token is invalid or expired."""

    error_type = "invalid_token"

    def __init__(self, message: str = "Invalid authentication token"):
        super().__init__(message)


class SessionCookieError(AuthenticationError):
    """Raised when session cookie creation or verification fails."""

    error_type = "session_cookie_error"

    def __init__(self, message: str = "Session cookie error"):
        super().__init__(message)


# Authorization errors (403)
class UserDisabledError(AppException):
    """Raised when the provider account is disabled."""

    status_code = 403
    error_type = "user_disabled"

    def __init__(self, message: str = "User account is disabled"):
        super().__init__(message)


class IdentityNotFoundError(NotFoundError):
    """Raised when the provider has no user for a uid or email."""

    error_type = "identity_not_found"

    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class EmailExistsError(ConflictError):
    """Raised when attempting to register with an existing email."""

    error_type = "email_exists"

    def __init__(self, message: str = "Email already registered"):
        super().__init__(message)


# Validation errors (400)
class WeakPasswordError(ValidationError):
    """Raised when password does not meet strength requirements."""

    error_type = "weak_password"

    def __init__(self, message: str = "Password is too weak"):
        super().__init__(message)


class PasswordPolicyError(ValidationError):
    """Raised when password does not meet policy requirements."""

    error_type = "password_policy_error"

    def __init__(
        self,
        message: str = "Password does not meet requirements",
        requirements: list[str] | None = None,
    ):
        self.requirements = requirements or []
        if requirements:
            message = f"{message}: {', '.join(requirements)}"
        super().__init__(message)


class EmailVerificationError(ValidationError):
    """Raised when a verification link cannot be generated."""

    error_type = "email_verification_error"

    def __init__(self, message: str = "Email verification failed"):
        super().__init__(message)
