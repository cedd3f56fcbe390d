"""Profile domain schemas.

Security notes:
- ProfileUpdateMe cannot touch role or status
- Role and status changes go through the admin endpoints only
"""

from datetime import UTC, datetime

from pydantic import Field, field_serializer, field_validator
from sqlmodel import SQLModel

from opsdesk.profile.models import ProfileRole, ProfileStatus


def _iso_utc(value: datetime) -> str:
    """Format as ISO 8601 in UTC with a Z suffix (2026-01-19T12:34:56Z).

    Naive values come from the database and are already UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    else:
        value = value.replace(tzinfo=UTC)
    return value.replace(microsecond=0).isoformat().replace("+00:00", "Z")


class ProfileRead(SQLModel):
    id: str
    email: str | None
    first_name: str | None
    last_name: str | None
    full_name: str | None
    avatar_url: str | None
    role: str | None
    status: str
    created_at: datetime
    updated_at: datetime
    last_active: datetime | None = None

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        return _iso_utc(value)

    @field_serializer("last_active")
    def serialize_last_active(self, value: datetime | None) -> str | None:
        return _iso_utc(value) if value is not None else None


class ProfileUpdateMe(SQLModel):
    """Fields the owning user may change."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    avatar_url: str | None = Field(default=None, max_length=1024)


class ProfileStatusUpdate(SQLModel):
    """Admin decision on a profile; only approved or rejected."""

    status: ProfileStatus

    @field_validator("status")
    @classmethod
    def status_must_be_decision(cls, value: ProfileStatus) -> ProfileStatus:
        if value == ProfileStatus.pending:
            raise ValueError("status must be 'approved' or 'rejected'")
        return value


class ProfileRoleUpdate(SQLModel):
    role: ProfileRole


class ProfileListResponse(SQLModel):
    items: list[ProfileRead]
    total: int
    page: int
    limit: int
