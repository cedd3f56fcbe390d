"""Profile domain router.

Owners read and edit their own profile; admins list profiles and decide
approval and role.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlmodel import col, func, or_, select

from opsdesk.access.dependencies import (
    AdminAccessDep,
    CurrentProfileDep,
    require_access,
    require_admin,
)
from opsdesk.activity.service import try_record_activity
from opsdesk.core.constants import CommonResponses, Routes
from opsdesk.core.deps import SessionDep
from opsdesk.core.email import send_account_status_email
from opsdesk.profile.exceptions import ProfileNotFoundError
from opsdesk.profile.models import Profile, ProfileRole, ProfileStatus
from opsdesk.profile.schemas import (
    ProfileListResponse,
    ProfileRead,
    ProfileRoleUpdate,
    ProfileStatusUpdate,
    ProfileUpdateMe,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.PROFILE.prefix,
    tags=[Routes.PROFILE.tag],
    dependencies=[Depends(require_access)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
    },
)


def _describe(profile: Profile) -> str:
    """``First Last (email)`` as shown in the activity log."""
    return f"{profile.display_name} ({profile.email or 'no email'})"


def _get_or_404(session, profile_id: str) -> Profile:
    profile = session.get(Profile, profile_id)
    if profile is None:
        raise ProfileNotFoundError()
    return profile


@router.get("/me", response_model=ProfileRead)
async def get_me(profile: CurrentProfileDep):
    """Get the current user's profile."""
    return profile


@router.patch("/me", response_model=ProfileRead)
async def update_me(
    profile: CurrentProfileDep, profile_update: ProfileUpdateMe, session: SessionDep
):
    """Update the current user's names and avatar.

    Role and status cannot be changed here.
    """
    update_data = profile_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(profile, key, value)
    if {"first_name", "last_name"} & update_data.keys():
        names = [p for p in (profile.first_name, profile.last_name) if p]
        profile.full_name = " ".join(names) or profile.full_name
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@router.get(
    "/",
    response_model=ProfileListResponse,
    dependencies=[Depends(require_admin)],
)
async def list_profiles(
    session: SessionDep,
    search: str | None = Query(default=None, max_length=100),
    role: ProfileRole | None = None,
    status: ProfileStatus | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    """List profiles, newest first. Admin only.

    ``search`` matches email and names, case-insensitively.
    """
    statement = select(Profile)
    if search:
        pattern = f"%{search.lower()}%"
        statement = statement.where(
            or_(
                func.lower(col(Profile.email)).like(pattern),
                func.lower(col(Profile.first_name)).like(pattern),
                func.lower(col(Profile.last_name)).like(pattern),
                func.lower(col(Profile.full_name)).like(pattern),
            )
        )
    if role is not None:
        statement = statement.where(Profile.role == role.value)
    if status is not None:
        statement = statement.where(Profile.status == status.value)

    total = session.exec(
        select(func.count()).select_from(statement.subquery())
    ).one()
    items = session.exec(
        statement.order_by(col(Profile.created_at).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    return ProfileListResponse(items=items, total=total, page=page, limit=limit)


@router.get(
    "/{profile_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_admin)],
    responses={**CommonResponses.NOT_FOUND},
)
async def get_profile(profile_id: str, session: SessionDep):
    """Get a profile by id. Admin only."""
    return _get_or_404(session, profile_id)


@router.patch(
    "/{profile_id}/status",
    response_model=ProfileRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def update_status(
    profile_id: str,
    status_update: ProfileStatusUpdate,
    session: SessionDep,
    admin: AdminAccessDep,
):
    """Approve or reject a profile. Admin only.

    The user is notified by email on a best-effort basis.
    """
    profile = _get_or_404(session, profile_id)
    new_status = status_update.status
    profile.status = new_status.value
    session.add(profile)
    session.commit()
    session.refresh(profile)

    verb = "Approved" if new_status == ProfileStatus.approved else "Rejected"
    try_record_activity(
        session,
        admin.profile.id,
        f"User {verb}",
        details=f"{verb} user: {_describe(profile)}",
        meta={"target_user_id": profile.id, "status": new_status.value},
    )
    logger.info(
        "Profile %s set to %s by %s",
        profile.id,
        new_status.value,
        admin.profile.id,
        extra={"user_id": admin.profile.id},
    )

    if profile.email:
        try:
            send_account_status_email(
                profile.email, profile.first_name or "", new_status.value
            )
        except Exception as e:
            logger.warning("Status email to %s failed: %s", profile.id, e)

    return profile


@router.patch(
    "/{profile_id}/role",
    response_model=ProfileRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def update_role(
    profile_id: str,
    role_update: ProfileRoleUpdate,
    session: SessionDep,
    admin: AdminAccessDep,
):
    """Change a profile's role. Admin only."""
    profile = _get_or_404(session, profile_id)
    profile.role = role_update.role.value
    session.add(profile)
    session.commit()
    session.refresh(profile)

    try_record_activity(
        session,
        admin.profile.id,
        "User Role Changed",
        details=f"Changed {profile.display_name}'s role to {role_update.role.value}",
        meta={"target_user_id": profile.id, "role": role_update.role.value},
    )
    return profile
