"""Shared dependency type aliases for FastAPI routes.

Domain-specific aliases live next to their domain
(``opsdesk.access.dependencies``, ``opsdesk.documents.store``).
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from opsdesk.auth.service import FirebaseAuthService, get_firebase_auth_service
from opsdesk.core.settings import Settings, get_settings
from opsdesk.db.engine import get_session

# Database session
SessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]

# Firebase authentication service
FirebaseAuthDep = Annotated[FirebaseAuthService, Depends(get_firebase_auth_service)]
