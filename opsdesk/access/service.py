"""Access check orchestration: resolver -> profile lookup -> decision.

``AccessChecker.check`` never raises; every failure is folded into the
returned verdict.
"""

import logging

from opsdesk.access.decision import decide_access
from opsdesk.access.exceptions import NoSessionError, SessionProviderError
from opsdesk.access.models import (
    CHECK_FAILED_MESSAGE,
    AccessError,
    AccessPolicy,
    AccessVerdict,
)
from opsdesk.access.session import SessionResolver
from opsdesk.core.settings import Settings
from opsdesk.profile.exceptions import ProfileLookupError
from opsdesk.profile.gate import ProfileGate
from opsdesk.profile.models import ProfileRole

logger = logging.getLogger(__name__)


def policy_from_settings(settings: Settings) -> AccessPolicy:
    return AccessPolicy(
        oauth_providers=settings.oauth_providers_set,
        oauth_bypass_approval=settings.oauth_bypass_approval,
    )


class AccessChecker:
    def __init__(
        self,
        resolver: SessionResolver,
        profiles: ProfileGate,
        policy: AccessPolicy,
    ):
        self._resolver = resolver
        self._profiles = profiles
        self._policy = policy

    async def check(
        self,
        required_role: ProfileRole | str | None = None,
        *,
        settle: bool = True,
    ) -> AccessVerdict:
        """Run a full access check and return the verdict.

        Args:
            required_role: Role the caller must hold, if any
            settle: Let the resolver re-query once when no session is found
        """
        try:
            resolved = await self._resolver.resolve(settle=settle)
        except NoSessionError as e:
            return AccessVerdict.deny(AccessError.no_session, message=e.message)
        except SessionProviderError as e:
            return AccessVerdict.deny(
                AccessError.session_error, message=f"Session error: {e.message}"
            )
        except Exception:
            logger.exception("Session resolution failed")
            return AccessVerdict.deny(AccessError.unknown, message=CHECK_FAILED_MESSAGE)

        identity = resolved.identity
        profile = None
        if identity.email_confirmed:
            try:
                profile = self._profiles.get_profile(identity.id)
            except ProfileLookupError:
                return AccessVerdict.deny(AccessError.profile_error, identity=identity)
            except Exception:
                logger.exception("Profile lookup failed for %s", identity.id)
                return AccessVerdict.deny(
                    AccessError.unknown,
                    identity=identity,
                    message=CHECK_FAILED_MESSAGE,
                )

        verdict = decide_access(identity, profile, required_role, policy=self._policy)
        if verdict.error is not None:
            logger.info(
                "Access denied for %s: %s",
                identity.id,
                verdict.error.value,
                extra={"user_id": identity.id, "access_error": verdict.error.value},
            )
        return verdict
