"""Process-wide last-active tracker.

``activity_tracker`` is started and stopped by the application lifespan.
Touches are throttled per profile and written from a worker thread without
the caller waiting; a failed write is logged and forgotten.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from opsdesk.core.mixins import utc_now
from opsdesk.profile.models import Profile

logger = logging.getLogger(__name__)

DEFAULT_THROTTLE_SECONDS = 600


class ActivityTracker:
    def __init__(
        self,
        throttle_seconds: float = DEFAULT_THROTTLE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._throttle_seconds = throttle_seconds
        self._clock = clock
        self._session_factory: Callable[[], Session] | None = None
        self._last_touch: dict[str, float] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._session_factory is not None

    def start(
        self,
        session_factory: Callable[[], Session],
        *,
        throttle_seconds: float | None = None,
    ) -> None:
        """Begin accepting touches. Calling start twice is a no-op."""
        if self.running:
            logger.debug("Activity tracker already running")
            return
        if throttle_seconds is not None:
            self._throttle_seconds = throttle_seconds
        self._session_factory = session_factory
        logger.info("Activity tracker started (throttle %ss)", self._throttle_seconds)

    async def stop(self) -> None:
        """Stop accepting touches and wait for writes already scheduled."""
        if not self.running:
            return
        self._session_factory = None
        pending = list(self._tasks)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._last_touch.clear()
        logger.info("Activity tracker stopped")

    def touch(self, profile_id: str) -> bool:
        """Schedule a last_active update unless one ran inside the throttle window.

        Returns:
            True if a write was scheduled
        """
        factory = self._session_factory
        if factory is None:
            return False

        now = self._clock()
        last = self._last_touch.get(profile_id)
        if last is not None and now - last < self._throttle_seconds:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False

        self._prune(now)
        self._last_touch[profile_id] = now
        task = loop.create_task(
            asyncio.to_thread(self._write, factory, profile_id, utc_now())
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    def _prune(self, now: float) -> None:
        """Drop entries whose throttle window has passed."""
        expired = [
            key
            for key, last in self._last_touch.items()
            if now - last >= self._throttle_seconds
        ]
        for key in expired:
            del self._last_touch[key]

    def forget(self, profile_id: str) -> None:
        """Drop throttle state for a profile (on sign-out)."""
        self._last_touch.pop(profile_id, None)

    @staticmethod
    def _write(
        session_factory: Callable[[], Session], profile_id: str, when: datetime
    ) -> None:
        # updated_at is pinned so the touch does not look like a profile edit.
        statement = (
            update(Profile)
            .where(Profile.id == profile_id)
            .values(last_active=when, updated_at=Profile.updated_at)
        )
        try:
            with session_factory() as session:
                session.connection().execute(statement)
                session.commit()
        except SQLAlchemyError as e:
            logger.warning(
                "last_active update failed for %s: %s",
                profile_id,
                e,
                extra={"user_id": profile_id},
            )


activity_tracker = ActivityTracker()
