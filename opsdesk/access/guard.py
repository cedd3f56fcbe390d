"""Guard Wrapper: per-view access state machine.

    loading -> authenticated | denied
    authenticated -> denied            (SIGNED_OUT, or a failing re-check)
    denied -> authenticated            (a passing re-check before the grace ends)
    denied -> redirecting              (after the grace delay)

``redirecting`` is terminal; the client navigates to ``redirect_to``, which
is always the landing route whatever the error was.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from opsdesk.access.events import AuthEvent
from opsdesk.access.models import (
    SESSION_EXPIRED_MESSAGE,
    AccessError,
    AccessVerdict,
)

logger = logging.getLogger(__name__)


class GuardState(str, Enum):
    loading = "loading"
    authenticated = "authenticated"
    denied = "denied"
    redirecting = "redirecting"


@dataclass(frozen=True)
class GuardView:
    """What the client renders for the current state."""

    state: GuardState
    verdict: AccessVerdict
    redirect_to: str | None = None

    @property
    def message(self) -> str | None:
        return self.verdict.message

    def to_dict(self) -> dict:
        profile = self.verdict.profile
        return {
            "state": self.state.value,
            "error": self.verdict.error.value if self.verdict.error else None,
            "message": self.message,
            "redirect_to": self.redirect_to,
            "profile_id": profile.id if profile else None,
            "role": profile.effective_role.value if profile else None,
        }


class AuthGuard:
    """Runs access checks on mount and on auth-state events.

    Args:
        check: Coroutine factory returning a fresh verdict
        on_change: Called with the new view after every state change
        landing_route: Where every denial ends up
        redirect_grace: Seconds a denial is shown before redirecting
        signed_in_delay: Settle delay before re-checking on SIGNED_IN
        initial_session_delay: Settle delay before re-checking on INITIAL_SESSION
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        check: Callable[[], Awaitable[AccessVerdict]],
        *,
        on_change: Callable[[GuardView], Awaitable[None]] | None = None,
        landing_route: str = "/",
        redirect_grace: float = 2.0,
        signed_in_delay: float = 2.0,
        initial_session_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._check = check
        self._on_change = on_change
        self._landing_route = landing_route
        self._redirect_grace = redirect_grace
        self._event_delays = {
            AuthEvent.signed_in: signed_in_delay,
            AuthEvent.initial_session: initial_session_delay,
        }
        self._sleep = sleep
        self._mounted = False
        self.state = GuardState.loading
        self.verdict = AccessVerdict.pending_check()
        self.pending_redirect: asyncio.Task | None = None

    @property
    def identity_id(self) -> str | None:
        identity = self.verdict.identity
        return identity.id if identity else None

    def view(self) -> GuardView:
        redirect_to = (
            self._landing_route if self.state is GuardState.redirecting else None
        )
        return GuardView(
            state=self.state, verdict=self.verdict, redirect_to=redirect_to
        )

    async def mount(self) -> None:
        self._mounted = True
        await self._transition(GuardState.loading)
        await self._run_check()

    def unmount(self) -> None:
        """Stop reacting. A check still in flight will not update state."""
        self._mounted = False
        self._cancel_redirect()

    async def handle_event(self, event: AuthEvent) -> None:
        if not self._mounted or self.state is GuardState.redirecting:
            return

        if event is AuthEvent.token_refreshed:
            return

        if event is AuthEvent.signed_out:
            await self._apply(
                AccessVerdict.deny(
                    AccessError.no_session, message=SESSION_EXPIRED_MESSAGE
                )
            )
            return

        await self._sleep(self._event_delays[event])
        if self._mounted:
            await self._run_check()

    async def _run_check(self) -> None:
        verdict = await self._check()
        if not self._mounted:
            return
        await self._apply(verdict)

    async def _apply(self, verdict: AccessVerdict) -> None:
        if self.state is GuardState.redirecting:
            return
        self.verdict = verdict
        if verdict.allowed:
            self._cancel_redirect()
            await self._transition(GuardState.authenticated)
            return

        await self._transition(GuardState.denied)
        if self.pending_redirect is None or self.pending_redirect.done():
            self.pending_redirect = asyncio.get_running_loop().create_task(
                self._redirect_after_grace()
            )

    async def _redirect_after_grace(self) -> None:
        await self._sleep(self._redirect_grace)
        if self._mounted and self.state is GuardState.denied:
            await self._transition(GuardState.redirecting)

    def _cancel_redirect(self) -> None:
        if self.pending_redirect is not None and not self.pending_redirect.done():
            self.pending_redirect.cancel()
        self.pending_redirect = None

    async def _transition(self, state: GuardState) -> None:
        self.state = state
        error = self.verdict.error
        logger.debug(
            "Guard -> %s",
            state.value,
            extra={
                "guard_state": state.value,
                "access_error": error.value if error else None,
                "user_id": self.identity_id,
            },
        )
        if self._on_change is not None:
            await self._on_change(self.view())
