"""Reusable model mixins for SQLModel tables."""

from datetime import UTC, datetime

from sqlalchemy import text
from sqlmodel import Field


def utc_now() -> datetime:
    """Return current UTC time without microseconds."""
    return datetime.now(UTC).replace(microsecond=0)


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the ORM.

    Usage:
        class Profile(TimestampMixin, SQLModel, table=True):
            ...
    """

    created_at: datetime = Field(
        default_factory=utc_now,
        index=True,
        sa_column_kwargs={"server_default": text("CURRENT_TIMESTAMP")},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column_kwargs={
            "server_default": text("CURRENT_TIMESTAMP"),
            "onupdate": utc_now,
        },
    )
