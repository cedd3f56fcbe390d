"""Profile domain models.

One ``profiles`` row per auth-provider identity. ``role`` and ``status`` are
stored as plain strings: rows edited outside the app may carry values this
code does not know, and those must stay loadable so the access check can
deny them as unknown.
"""

from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from opsdesk.core.mixins import TimestampMixin


class ProfileRole(str, Enum):
    """Application role. ``staff`` is the least-privileged value."""

    staff = "staff"
    admin = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "ProfileRole":
        """Return the role for ``value``, falling back to staff."""
        try:
            return cls(value)
        except ValueError:
            return cls.staff


class ProfileStatus(str, Enum):
    """Approval status.

    - pending: signed up, waiting for an administrator
    - approved: may use the application
    - rejected: refused by an administrator
    """

    pending = "pending"
    approved = "approved"
    rejected = "rejected"

    @classmethod
    def parse(cls, value: str | None) -> "ProfileStatus | None":
        """Return the status for ``value`` or None when it is not recognized."""
        try:
            return cls(value)
        except ValueError:
            return None


class Profile(TimestampMixin, SQLModel, table=True):
    """Application-owned record describing role and approval for an identity."""

    __tablename__: str = "profiles"

    id: str = Field(primary_key=True, max_length=128)
    email: str | None = Field(default=None, index=True, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    full_name: str | None = Field(default=None, max_length=200)
    avatar_url: str | None = Field(default=None, max_length=1024)
    role: str | None = Field(default=ProfileRole.staff.value, max_length=20)
    status: str = Field(default=ProfileStatus.pending.value, index=True, max_length=20)
    last_active: datetime | None = Field(default=None)

    @property
    def effective_role(self) -> ProfileRole:
        return ProfileRole.parse(self.role)

    @property
    def display_name(self) -> str:
        parts = [p for p in (self.first_name, self.last_name) if p]
        if parts:
            return " ".join(parts)
        return self.full_name or self.email or self.id
