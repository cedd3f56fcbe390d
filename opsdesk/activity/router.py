"""Activity log router. Read-only."""

from fastapi import APIRouter, Depends, Query

from opsdesk.access.dependencies import CurrentProfileDep, require_access, require_admin
from opsdesk.activity.schemas import ActivityLogRead
from opsdesk.activity.service import (
    DEFAULT_ALL_LIMIT,
    DEFAULT_USER_LIMIT,
    list_all_activity,
    list_user_activity,
)
from opsdesk.core.constants import CommonResponses, Routes
from opsdesk.core.deps import SessionDep

router = APIRouter(
    prefix=Routes.ACTIVITY.prefix,
    tags=[Routes.ACTIVITY.tag],
    dependencies=[Depends(require_access)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
    },
)


@router.get("/me", response_model=list[ActivityLogRead])
async def list_my_activity(
    profile: CurrentProfileDep,
    session: SessionDep,
    limit: int = Query(default=DEFAULT_USER_LIMIT, ge=1, le=500),
):
    """The current user's own activity, newest first."""
    return list_user_activity(session, profile.id, limit)


@router.get(
    "/",
    response_model=list[ActivityLogRead],
    dependencies=[Depends(require_admin)],
)
async def list_activity(
    session: SessionDep,
    limit: int = Query(default=DEFAULT_ALL_LIMIT, ge=1, le=1000),
):
    """All activity, newest first. Admin only."""
    return list_all_activity(session, limit)
