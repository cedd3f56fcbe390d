"""Activity log response schemas."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ActivityLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    action: str
    details: str | None
    meta: dict[str, Any] | None = Field(default=None, serialization_alias="metadata")
    created_at: datetime
    user_email: str | None
    user_full_name: str | None
    user_avatar: str | None
