"""In-process auth-state event bus.

Routes publish sign-in/sign-out events; live guards (one per websocket)
subscribe and react. Delivery is fire-and-forget on the running loop.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    signed_in = "SIGNED_IN"
    signed_out = "SIGNED_OUT"
    initial_session = "INITIAL_SESSION"
    token_refreshed = "TOKEN_REFRESHED"


Listener = Callable[[str, AuthEvent], Awaitable[None]]


class AuthEventBus:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task] = set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener and return the function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, uid: str, event: AuthEvent) -> None:
        """Deliver ``event`` for ``uid`` to every listener without waiting."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running loop, dropping %s for %s", event.value, uid)
            return

        for listener in list(self._listeners):
            task = loop.create_task(self._deliver(listener, uid, event))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _deliver(self, listener: Listener, uid: str, event: AuthEvent) -> None:
        try:
            await listener(uid, event)
        except Exception:
            logger.exception("Auth event listener failed for %s", event.value)

    async def drain(self) -> None:
        """Wait for deliveries already in flight."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


auth_events = AuthEventBus()
