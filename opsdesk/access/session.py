"""Session Resolver: find the current session and its identity.

After a redirect-based sign-in the client delivers its token a moment
after the page (or socket) opens, so a missing session is re-queried once
after a fixed settle delay before the resolver gives up.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from starlette.concurrency import run_in_threadpool

from opsdesk.access.exceptions import NoSessionError, SessionProviderError
from opsdesk.auth.exceptions import IdentityNotFoundError
from opsdesk.auth.identity import Identity
from opsdesk.auth.service import FirebaseAuthServiceProtocol, TokenClaims
from opsdesk.core.exceptions import AppException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """A verified provider session; ``identity`` is None when not embedded."""

    uid: str
    identity: Identity | None = None


@dataclass(frozen=True)
class ResolvedSession:
    session: AuthSession
    identity: Identity


class SessionSource(Protocol):
    """Where the resolver reads sessions and identities from."""

    async def get_session(self) -> AuthSession | None: ...

    async def get_identity(self, uid: str) -> Identity | None: ...


class FirebaseSessionSource:
    """Session source backed by Firebase session cookies and ID tokens.

    The session cookie wins over a bearer ID token. Credentials can be
    swapped later, which is how a websocket client hands over the token it
    obtained after an OAuth redirect.
    """

    def __init__(
        self,
        firebase_auth: FirebaseAuthServiceProtocol,
        *,
        session_cookie: str | None = None,
        id_token: str | None = None,
    ):
        self._firebase_auth = firebase_auth
        self._session_cookie = session_cookie
        self._id_token = id_token

    @property
    def has_credentials(self) -> bool:
        return bool(self._session_cookie or self._id_token)

    def update_credentials(
        self, *, session_cookie: str | None = None, id_token: str | None = None
    ) -> None:
        self._session_cookie = session_cookie
        self._id_token = id_token

    def _verify(self) -> TokenClaims | None:
        if self._session_cookie:
            return self._firebase_auth.verify_session_cookie(
                self._session_cookie, check_revoked=True
            )
        if self._id_token:
            return self._firebase_auth.verify_id_token(self._id_token)
        return None

    async def get_session(self) -> AuthSession | None:
        try:
            claims = await run_in_threadpool(self._verify)
        except AppException as e:
            raise SessionProviderError(e.message) from e
        if claims is None:
            return None
        return AuthSession(uid=claims.uid, identity=claims.to_identity())

    async def get_identity(self, uid: str) -> Identity | None:
        try:
            record = await run_in_threadpool(self._firebase_auth.get_user, uid)
        except IdentityNotFoundError:
            return None
        except AppException as e:
            raise SessionProviderError(e.message) from e
        return record.to_identity()


class SessionResolver:
    """Resolve ``{session, identity}`` from a SessionSource.

    Args:
        source: Provider-facing session source
        settle_delay: Seconds to wait before the single re-query
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        source: SessionSource,
        *,
        settle_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._source = source
        self._settle_delay = settle_delay
        self._sleep = sleep

    async def resolve(self, *, settle: bool = True) -> ResolvedSession:
        """Return the current session and identity.

        Args:
            settle: Re-query once after the settle delay when no session is found

        Raises:
            NoSessionError: If no session exists (after the retry, if enabled)
            SessionProviderError: If the provider fails or rejects the credentials
        """
        session = await self._source.get_session()
        if session is None and settle:
            logger.debug("No session yet, re-querying in %.2fs", self._settle_delay)
            await self._sleep(self._settle_delay)
            session = await self._source.get_session()

        if session is None:
            raise NoSessionError()

        identity = session.identity
        if identity is None:
            identity = await self._source.get_identity(session.uid)
            if identity is None:
                logger.info(
                    "Session %s has no provider user",
                    session.uid,
                    extra={"user_id": session.uid},
                )
                raise NoSessionError("Session exists but user data is missing")

        return ResolvedSession(session=session, identity=identity)
