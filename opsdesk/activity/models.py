"""Activity log table.

Rows are append-only: nothing in the application updates or deletes them.
User display fields are copied in at write time so the log still reads
correctly after a profile changes.
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class ActivityLog(SQLModel, table=True):
    __tablename__: str = "activity_logs"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: str = Field(index=True, max_length=128)
    action: str = Field(max_length=100)
    details: str | None = Field(default=None)
    # "metadata" is reserved on declarative models.
    meta: dict[str, Any] | None = Field(
        default=None, sa_column=Column("metadata", JSON, nullable=True)
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    user_email: str | None = Field(default=None, max_length=255)
    user_full_name: str | None = Field(default=None, max_length=200)
    user_avatar: str | None = Field(default=None, max_length=1024)
