"""One log line per HTTP request.

Access dependencies store the admitted profile id on ``request.state`` so
the line can be tied to a user. Health probes are logged at DEBUG.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from opsdesk.core.constants import Routes
from opsdesk.core.logging import env_bool

logger = logging.getLogger("opsdesk.request")


def _level(path: str, status_code: int | None) -> int:
    if status_code is None or status_code >= 500:
        return logging.ERROR
    if path == Routes.HEALTH.prefix:
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.perf_counter()
        status_code: int | None = None
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
            path = request.url.path
            logger.log(
                _level(path, status_code),
                "%s %s -> %s (%.2fms)",
                request.method,
                path,
                status_code,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": path,
                    "query": request.url.query,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent"),
                    "user_id": getattr(request.state, "user_id", None),
                },
            )


def add_request_logging_middleware(app: FastAPI) -> None:
    """Attach the middleware unless LOG_REQUESTS is false."""
    if env_bool("LOG_REQUESTS", default=True):
        app.add_middleware(RequestLoggingMiddleware)
