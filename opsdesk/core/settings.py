"""Application settings using Pydantic Settings for typed configuration.

This module centralizes all configuration and provides type-safe access to settings.
Settings are loaded from environment variables with sensible defaults.
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str) -> list[str]:
    items = []
    for item in raw.split(","):
        trimmed = item.strip()
        if trimmed:
            items.append(trimmed)
    return items


class Settings(BaseSettings):
    """Application-wide settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    env_name: str = Field(default="development", alias="ENV_NAME")

    # Database
    database_url: str = Field(alias="DATABASE_URL")

    # Admin panel
    session_secret_key: str = Field(alias="SESSION_SECRET_KEY")
    admin_username: str = Field(alias="ADMIN_USERNAME")
    admin_password: str = Field(alias="ADMIN_PASSWORD")

    # CORS
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # Email (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    app_domain: str = Field(default="resend.dev", alias="APP_DOMAIN")
    client_url: str = Field(default="http://localhost:3000", alias="CLIENT_URL")

    # Firebase / Auth
    session_expires_days: int = Field(
        default=5, alias="SESSION_EXPIRES_DAYS", ge=1, le=14
    )
    firebase_api_key: str | None = Field(default=None, alias="FIREBASE_API_KEY")

    # Access gate
    landing_route: str = Field(default="/", alias="LANDING_ROUTE")
    session_settle_delay_seconds: float = Field(
        default=1.0, alias="SESSION_SETTLE_DELAY_SECONDS", ge=0
    )
    guard_signed_in_delay_seconds: float = Field(
        default=2.0, alias="GUARD_SIGNED_IN_DELAY_SECONDS", ge=0
    )
    guard_initial_session_delay_seconds: float = Field(
        default=3.0, alias="GUARD_INITIAL_SESSION_DELAY_SECONDS", ge=0
    )
    guard_redirect_grace_seconds: float = Field(
        default=2.0, alias="GUARD_REDIRECT_GRACE_SECONDS", ge=0
    )
    oauth_providers: str = Field(default="google,oauth", alias="OAUTH_PROVIDERS")
    oauth_auto_approve: bool = Field(default=True, alias="OAUTH_AUTO_APPROVE")
    oauth_bypass_approval: bool = Field(default=True, alias="OAUTH_BYPASS_APPROVAL")

    # Activity tracking
    last_active_throttle_seconds: int = Field(
        default=600, alias="LAST_ACTIVE_THROTTLE_SECONDS", ge=0
    )

    @computed_field
    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return _split_csv(self.cors_origins)

    @computed_field
    @property
    def oauth_providers_set(self) -> frozenset[str]:
        """Parse OAUTH_PROVIDERS into a set of normalized provider ids."""
        return frozenset(p.lower() for p in _split_csv(self.oauth_providers))

    @computed_field
    @property
    def is_secure_cookie(self) -> bool:
        """Determine if cookies should be set with Secure flag."""
        return self.env_name.lower() not in {"dev", "development", "local", "test"}

    @computed_field
    @property
    def session_expires_in(self) -> timedelta:
        """Get session expiration as timedelta."""
        return timedelta(days=self.session_expires_days)

    @computed_field
    @property
    def identity_toolkit_base_url(self) -> str:
        """Google Identity Toolkit API base URL."""
        return "https://identitytoolkit.googleapis.com"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
