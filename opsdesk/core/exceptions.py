"""Base errors shared by every OpsDesk domain.

Each error knows the HTTP status and ``type`` it is rendered with, so
routes raise and the handlers in ``exception_handlers`` do the rest.
Domain packages (``auth``, ``access``, ``profile``) subclass these.
"""

from typing import Any


class AppException(Exception):
    """Root of the OpsDesk error hierarchy.

    ``status_code`` and ``error_type`` are class attributes; subclasses
    override them, and ``AccessDeniedError`` sets them per instance.
    """

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)

    def log_context(self) -> dict[str, Any]:
        """Extra fields attached to the log record when this error is handled."""
        return {}


class NotFoundError(AppException):
    status_code = 404
    error_type = "not_found"

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message)


class ConflictError(AppException):
    status_code = 409
    error_type = "conflict"

    def __init__(self, message: str = "Resource already exists"):
        super().__init__(message)


class ValidationError(AppException):
    """Input the provider or a domain rule rejected (not schema validation)."""

    status_code = 400
    error_type = "validation_error"

    def __init__(self, message: str = "Validation failed"):
        super().__init__(message)


class RateLimitError(AppException):
    """The auth provider throttled us; ``retry_after`` is echoed as a header."""

    status_code = 429
    error_type = "rate_limit_exceeded"

    def __init__(
        self,
        message: str = "Too many requests, please try again later",
        retry_after: int | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(message)


class UpstreamError(AppException):
    """A backend we depend on (auth provider, Firestore) failed."""

    status_code = 502
    error_type = "upstream_error"

    def __init__(self, message: str = "Upstream service failed"):
        super().__init__(message)


class ProviderError(UpstreamError):
    error_type = "provider_error"

    def __init__(
        self, message: str = "Authentication provider returned an invalid response"
    ):
        super().__init__(message)


class DocumentStoreError(UpstreamError):
    error_type = "document_store_error"

    def __init__(self, message: str = "Document store operation failed"):
        super().__init__(message)


class InternalError(AppException):
    def __init__(self, message: str = "An internal error occurred"):
        super().__init__(message)
