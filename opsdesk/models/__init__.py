"""
Model package.

IMPORTANT (Alembic / SQLModel):
- Alembic autogenerate relies on `SQLModel.metadata`, which is populated only
  when the table models are imported.
- `alembic/env.py` imports `opsdesk.models`, so this module must import all
  SQLModel `table=True` models to register them.
"""

from opsdesk.activity.models import ActivityLog  # noqa: F401
from opsdesk.profile.models import Profile  # noqa: F401
