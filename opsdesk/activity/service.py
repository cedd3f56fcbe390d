"""Activity log writes and reads."""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from opsdesk.activity.models import ActivityLog
from opsdesk.profile.models import Profile

logger = logging.getLogger(__name__)

DEFAULT_USER_LIMIT = 50
DEFAULT_ALL_LIMIT = 200


def record_activity(
    session: Session,
    user_id: str,
    action: str,
    details: str | None = None,
    meta: dict[str, Any] | None = None,
    *,
    user_email: str | None = None,
    user_full_name: str | None = None,
    user_avatar: str | None = None,
) -> ActivityLog:
    """Append an activity log entry.

    Display fields not passed in are copied from the user's profile.

    Args:
        session: Database session
        user_id: Profile id of the acting user
        action: Short action label, e.g. "Login"
        details: Free-text description
        meta: Optional structured metadata

    Returns:
        The stored entry
    """
    if not (user_email and user_full_name and user_avatar):
        profile = session.get(Profile, user_id)
        if profile is not None:
            user_email = user_email or profile.email
            names = " ".join(p for p in (profile.first_name, profile.last_name) if p)
            user_full_name = user_full_name or profile.full_name or names or None
            user_avatar = user_avatar or profile.avatar_url

    entry = ActivityLog(
        user_id=user_id,
        action=action,
        details=details,
        meta=meta,
        user_email=user_email,
        user_full_name=user_full_name,
        user_avatar=user_avatar,
    )
    session.add(entry)
    session.commit()
    session.refresh(entry)
    logger.debug("Activity %r by %s", action, user_id, extra={"user_id": user_id})
    return entry


def try_record_activity(
    session: Session, user_id: str, action: str, **kwargs: Any
) -> None:
    """record_activity for callers whose main work already succeeded."""
    try:
        record_activity(session, user_id, action, **kwargs)
    except SQLAlchemyError as e:
        session.rollback()
        logger.warning(
            "Failed to record activity %r for %s: %s",
            action,
            user_id,
            e,
            extra={"user_id": user_id},
        )


def list_user_activity(
    session: Session, user_id: str, limit: int = DEFAULT_USER_LIMIT
) -> Sequence[ActivityLog]:
    statement = (
        select(ActivityLog)
        .where(ActivityLog.user_id == user_id)
        .order_by(col(ActivityLog.created_at).desc())
        .limit(limit)
    )
    return session.exec(statement).all()


def list_all_activity(
    session: Session, limit: int = DEFAULT_ALL_LIMIT
) -> Sequence[ActivityLog]:
    statement = (
        select(ActivityLog).order_by(col(ActivityLog.created_at).desc()).limit(limit)
    )
    return session.exec(statement).all()
