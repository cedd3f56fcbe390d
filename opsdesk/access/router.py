"""Access domain router.

- ``GET /access/verdict``: one-shot verdict for polling clients
- ``WS /access/ws``: a live guard per connection
"""

import json
import logging

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from opsdesk.access.dependencies import (
    build_access_checker,
    security,
    session_source_for_request,
)
from opsdesk.access.events import AuthEvent, auth_events
from opsdesk.access.guard import AuthGuard, GuardView
from opsdesk.access.schemas import VerdictRead
from opsdesk.access.session import FirebaseSessionSource
from opsdesk.core.constants import SESSION_COOKIE_NAME, Routes
from opsdesk.core.deps import FirebaseAuthDep, SessionDep, SettingsDep
from opsdesk.profile.models import ProfileRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix=Routes.ACCESS.prefix, tags=[Routes.ACCESS.tag])


@router.get("/verdict", response_model=VerdictRead)
async def get_verdict(
    request: Request,
    session: SessionDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
    required_role: ProfileRole | None = None,
):
    """Return the access verdict for the caller.

    Always 200: a denial is reported in ``error``/``message``.
    """
    credentials = await security(request)
    source = session_source_for_request(request, firebase_auth, credentials)
    checker = build_access_checker(session, settings, source)
    verdict = await checker.check(required_role, settle=False)
    return VerdictRead.from_verdict(verdict)


async def _handle_client_message(
    guard: AuthGuard, source: FirebaseSessionSource, message: dict
) -> None:
    kind = message.get("type")
    if kind == "session":
        id_token = message.get("id_token")
        if not id_token:
            return
        source.update_credentials(id_token=id_token)
        await guard.handle_event(AuthEvent.signed_in)
    elif kind == "event":
        try:
            event = AuthEvent(message.get("event"))
        except ValueError:
            logger.debug("Ignoring unknown auth event %r", message.get("event"))
            return
        await guard.handle_event(event)
    else:
        logger.debug("Ignoring websocket message of type %r", kind)


@router.websocket("/ws")
async def guard_socket(
    websocket: WebSocket,
    session: SessionDep,
    firebase_auth: FirebaseAuthDep,
    settings: SettingsDep,
    required_role: ProfileRole | None = None,
):
    """Host an AuthGuard for the connected client.

    Server messages are guard views. Client messages:
    - ``{"type": "session", "id_token": "..."}`` after an OAuth redirect
    - ``{"type": "event", "event": "SIGNED_OUT"}`` forwarded from the auth SDK
    """
    await websocket.accept()
    source = FirebaseSessionSource(
        firebase_auth, session_cookie=websocket.cookies.get(SESSION_COOKIE_NAME)
    )
    checker = build_access_checker(session, settings, source)

    async def check():
        # The socket outlives many checks; never serve a cached profile.
        session.expire_all()
        return await checker.check(required_role)

    async def push(view: GuardView) -> None:
        if websocket.application_state is WebSocketState.CONNECTED:
            await websocket.send_json(view.to_dict())

    guard = AuthGuard(
        check,
        on_change=push,
        landing_route=settings.landing_route,
        redirect_grace=settings.guard_redirect_grace_seconds,
        signed_in_delay=settings.guard_signed_in_delay_seconds,
        initial_session_delay=settings.guard_initial_session_delay_seconds,
    )

    async def on_auth_event(uid: str, event: AuthEvent) -> None:
        if uid == guard.identity_id:
            await guard.handle_event(event)

    unsubscribe = auth_events.subscribe(on_auth_event)
    try:
        await guard.mount()
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.debug("Ignoring non-JSON websocket message")
                continue
            if isinstance(message, dict):
                await _handle_client_message(guard, source, message)
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        guard.unmount()
