"""
App-wide constants for route configuration.

Route prefixes, tags, common OpenAPI response definitions and the
Jinja2 environments used for emails and shell pages.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from opsdesk.core.exception_handlers import ErrorResponse

SESSION_COOKIE_NAME = "session"


@dataclass(frozen=True)
class RouteConfig:
    """Configuration for a route group."""

    prefix: str
    tag: str


class Routes:
    """Route configurations for all API endpoints."""

    AUTH = RouteConfig(prefix="/auth", tag="auth")
    ACCESS = RouteConfig(prefix="/access", tag="access")
    PROFILE = RouteConfig(prefix="/profiles", tag="profiles")
    ACTIVITY = RouteConfig(prefix="/activity-logs", tag="activity")
    DOCUMENTS = RouteConfig(prefix="/documents", tag="documents")
    HEALTH = RouteConfig(prefix="/health", tag="health")


class CommonResponses:
    """Standard HTTP error response definitions for OpenAPI documentation."""

    UNAUTHORIZED: dict[int, dict[str, Any]] = {
        401: {
            "model": ErrorResponse,
            "description": "No active session or the session is invalid",
        }
    }
    FORBIDDEN: dict[int, dict[str, Any]] = {
        403: {
            "model": ErrorResponse,
            "description": "Account not approved or lacks the required role",
        }
    }
    NOT_FOUND: dict[int, dict[str, Any]] = {
        404: {"model": ErrorResponse, "description": "Resource not found"}
    }
    CONFLICT: dict[int, dict[str, Any]] = {
        409: {"model": ErrorResponse, "description": "Resource already exists"}
    }
    BAD_REQUEST: dict[int, dict[str, Any]] = {
        400: {"model": ErrorResponse, "description": "Invalid request data"}
    }
    BAD_GATEWAY: dict[int, dict[str, Any]] = {
        502: {"model": ErrorResponse, "description": "Upstream service failed"}
    }


TemplatesDir = Path(__file__).parent.parent / "templates"

JinjaEmailTemplatesEnv = Environment(
    loader=FileSystemLoader(str(TemplatesDir / "emails")),
    autoescape=select_autoescape(["html", "xml"]),
)

JinjaPageTemplatesEnv = Environment(
    loader=FileSystemLoader(str(TemplatesDir / "pages")),
    autoescape=select_autoescape(["html", "xml"]),
)
