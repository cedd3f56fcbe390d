"""Exponential backoff for transient upstream failures."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 2
DEFAULT_BASE_DELAY = 0.2  # seconds


def _calculate_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Delay before retrying after zero-indexed ``attempt``."""
    return base_delay * (2**attempt)


async def with_retry[T](
    fn: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    base_delay: float = DEFAULT_BASE_DELAY,
    label: str = "operation",
) -> T:
    """Await ``fn()`` up to ``attempts`` times.

    Only ``exceptions`` trigger another attempt; anything else propagates
    at once. After the last attempt the final error is re-raised.
    """
    for attempt in range(attempts):
        try:
            return await fn()
        except exceptions as e:
            if attempt == attempts - 1:
                logger.warning(
                    "%s failed after %d attempts: %s",
                    label,
                    attempts,
                    type(e).__name__,
                )
                raise
            delay = _calculate_delay(attempt, base_delay)
            logger.debug(
                "%s attempt %d/%d failed (%s), retrying in %.2fs",
                label,
                attempt + 1,
                attempts,
                type(e).__name__,
                delay,
            )
            await asyncio.sleep(delay)
    raise ValueError("attempts must be at least 1")
