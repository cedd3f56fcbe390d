"""Tests for opsdesk/access/guard.py."""

import asyncio

import pytest

from opsdesk.access.events import AuthEvent
from opsdesk.access.guard import AuthGuard, GuardState
from opsdesk.access.models import SESSION_EXPIRED_MESSAGE, AccessError, AccessVerdict
from tests.helpers import make_identity, make_profile


def allowed():
    return AccessVerdict.allow(make_identity(), make_profile())


def denied(error=AccessError.pending):
    return AccessVerdict.deny(error, identity=make_identity(), profile=make_profile())


class ScriptedCheck:
    """Returns queued verdicts; repeats the last one when the queue runs out."""

    def __init__(self, *verdicts):
        self.verdicts = list(verdicts)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if len(self.verdicts) > 1:
            return self.verdicts.pop(0)
        return self.verdicts[0]


class Recorder:
    def __init__(self):
        self.views = []

    async def __call__(self, view):
        self.views.append(view)

    @property
    def states(self):
        return [v.state for v in self.views]


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_guard(check, recorder=None, sleep=None, **kwargs):
    return AuthGuard(
        check,
        on_change=recorder,
        sleep=sleep or RecordingSleep(),
        landing_route="/",
        **kwargs,
    )


class TestMount:
    @pytest.mark.asyncio
    async def test_loading_then_authenticated(self):
        recorder = Recorder()
        guard = make_guard(ScriptedCheck(allowed()), recorder)

        await guard.mount()

        assert recorder.states == [GuardState.loading, GuardState.authenticated]
        assert guard.pending_redirect is None

    @pytest.mark.asyncio
    async def test_denied_then_redirects_after_grace(self):
        recorder = Recorder()
        sleep = RecordingSleep()
        guard = make_guard(
            ScriptedCheck(denied()), recorder, sleep=sleep, redirect_grace=2.0
        )

        await guard.mount()
        assert guard.state is GuardState.denied
        assert "pending approval" in guard.view().message

        await guard.pending_redirect

        assert guard.state is GuardState.redirecting
        assert sleep.calls == [2.0]
        assert recorder.views[-1].redirect_to == "/"

    @pytest.mark.asyncio
    async def test_every_denial_redirects_to_landing(self):
        for error in (AccessError.role_mismatch, AccessError.no_session):
            guard = make_guard(ScriptedCheck(denied(error)))
            await guard.mount()
            await guard.pending_redirect

            assert guard.view().redirect_to == "/"

    @pytest.mark.asyncio
    async def test_unmount_discards_in_flight_check(self):
        recorder = Recorder()
        release = asyncio.Event()

        async def slow_check():
            await release.wait()
            return allowed()

        guard = make_guard(slow_check, recorder)
        task = asyncio.get_running_loop().create_task(guard.mount())
        await asyncio.sleep(0)
        guard.unmount()
        release.set()
        await task

        assert recorder.states == [GuardState.loading]


class TestEvents:
    @pytest.mark.asyncio
    async def test_signed_out_denies_immediately(self):
        check = ScriptedCheck(allowed())
        recorder = Recorder()
        guard = make_guard(check, recorder)
        await guard.mount()

        await guard.handle_event(AuthEvent.signed_out)

        assert guard.state is GuardState.denied
        assert guard.view().message == SESSION_EXPIRED_MESSAGE
        assert guard.verdict.error is AccessError.no_session
        assert check.calls == 1

    @pytest.mark.asyncio
    async def test_signed_in_rechecks_after_delay(self):
        check = ScriptedCheck(denied(AccessError.no_session), allowed())
        sleep = RecordingSleep()
        guard = make_guard(check, sleep=sleep, signed_in_delay=2.0)
        await guard.mount()

        await guard.handle_event(AuthEvent.signed_in)

        assert guard.state is GuardState.authenticated
        assert 2.0 in sleep.calls
        assert check.calls == 2

    @pytest.mark.asyncio
    async def test_initial_session_uses_its_own_delay(self):
        sleep = RecordingSleep()
        guard = make_guard(
            ScriptedCheck(allowed()),
            sleep=sleep,
            signed_in_delay=2.0,
            initial_session_delay=3.0,
        )
        await guard.mount()

        await guard.handle_event(AuthEvent.initial_session)

        assert sleep.calls == [3.0]

    @pytest.mark.asyncio
    async def test_token_refresh_is_ignored(self):
        check = ScriptedCheck(allowed())
        guard = make_guard(check)
        await guard.mount()

        await guard.handle_event(AuthEvent.token_refreshed)

        assert check.calls == 1

    @pytest.mark.asyncio
    async def test_passing_recheck_cancels_redirect(self):
        blocker = asyncio.Event()

        async def grace_sleep(seconds):
            if seconds == 5.0:
                await blocker.wait()

        check = ScriptedCheck(denied(), allowed())
        guard = make_guard(check, sleep=grace_sleep, redirect_grace=5.0)
        await guard.mount()
        redirect = guard.pending_redirect

        await guard.handle_event(AuthEvent.signed_in)
        await asyncio.sleep(0)

        assert guard.state is GuardState.authenticated
        assert redirect.cancelled()
        assert guard.pending_redirect is None

    @pytest.mark.asyncio
    async def test_redirecting_is_terminal(self):
        check = ScriptedCheck(denied(), allowed())
        guard = make_guard(check)
        await guard.mount()
        await guard.pending_redirect

        await guard.handle_event(AuthEvent.signed_in)

        assert guard.state is GuardState.redirecting
        assert check.calls == 1

    @pytest.mark.asyncio
    async def test_events_ignored_after_unmount(self):
        check = ScriptedCheck(allowed())
        guard = make_guard(check)
        await guard.mount()
        guard.unmount()

        await guard.handle_event(AuthEvent.signed_in)

        assert check.calls == 1


class TestView:
    @pytest.mark.asyncio
    async def test_to_dict_for_authenticated(self):
        guard = make_guard(ScriptedCheck(allowed()))
        await guard.mount()

        data = guard.view().to_dict()

        assert data == {
            "state": "authenticated",
            "error": None,
            "message": None,
            "redirect_to": None,
            "profile_id": "test-uid",
            "role": "staff",
        }

    def test_identity_id_unknown_before_mount(self):
        guard = make_guard(ScriptedCheck(allowed()))

        assert guard.identity_id is None
        assert guard.state is GuardState.loading
