from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from opsdesk.core.settings import get_settings


def allowed_origins() -> list[str]:
    """CORS_ORIGINS plus the UI origin, which always needs the session cookie."""
    settings = get_settings()
    origins = list(settings.cors_origins_list)
    if "*" not in origins and settings.client_url not in origins:
        origins.append(settings.client_url)
    return origins


def add_cors_middleware(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )
