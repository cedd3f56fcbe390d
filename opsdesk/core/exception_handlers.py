"""Render every error as ``{"type": ..., "message": ...}``.

Access denials use the same body; the page shell and API clients branch on
``type`` (``no_session``, ``pending``, ``role_mismatch``, ...).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from opsdesk.core.exceptions import AppException, RateLimitError

logger = logging.getLogger("opsdesk.exception")


class ErrorResponse(BaseModel):
    """Body of every error response (also used in the OpenAPI schema)."""

    type: str
    message: str


def _error(
    status_code: int,
    error_type: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(type=error_type, message=message)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(), headers=headers
    )


def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    extra = {
        "method": request.method,
        "path": request.url.path,
        "status_code": exc.status_code,
        "error_type": exc.error_type,
        **exc.log_context(),
    }
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    logger.log(level, "%s: %s", exc.error_type, exc.message, extra=extra)

    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    return _error(exc.status_code, exc.error_type, exc.message, headers)


def http_exception_handler(
    _request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Framework errors: unknown routes, wrong methods."""
    return _error(exc.status_code, "http_error", str(exc.detail))


def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Join pydantic errors into one ``field: problem`` message."""
    messages = []
    for error in exc.errors():
        field = ".".join(
            str(part) for part in error["loc"] if part not in ("body", "query")
        )
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return _error(422, "validation_error", "; ".join(messages))


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        extra={"method": request.method, "path": request.url.path, "status_code": 500},
        exc_info=exc,
    )
    return _error(500, "internal_error", "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
