"""Access Decision: identity + profile (+ required role) -> verdict.

Pure and synchronous. Callers own retries.
"""

import logging

from opsdesk.access.models import (
    ERROR_MESSAGES,
    AccessError,
    AccessPolicy,
    AccessVerdict,
)
from opsdesk.auth.identity import Identity
from opsdesk.profile.models import Profile, ProfileRole, ProfileStatus

logger = logging.getLogger(__name__)

DEFAULT_POLICY = AccessPolicy()


def decide_access(
    identity: Identity | None,
    profile: Profile | None,
    required_role: ProfileRole | str | None = None,
    *,
    policy: AccessPolicy = DEFAULT_POLICY,
) -> AccessVerdict:
    """Apply the access rules in order and stop at the first failure.

    1. no identity -> no_session
    2. unconfirmed email -> email_not_confirmed
    3. no profile -> profile_not_found
    4. unrecognized status -> unknown; pending/rejected -> pending/rejected,
       unless the identity signed in through an OAuth provider and the
       policy lets OAuth sign-ins bypass approval
    5. required role differs from the profile role -> role_mismatch
    6. allow
    """
    if identity is None:
        return AccessVerdict.deny(AccessError.no_session)

    if not identity.email_confirmed:
        return AccessVerdict.deny(AccessError.email_not_confirmed, identity=identity)

    if profile is None:
        return AccessVerdict.deny(AccessError.profile_not_found, identity=identity)

    status = ProfileStatus.parse(profile.status)
    if status is None:
        logger.warning(
            "Profile %s has unrecognized status %r",
            profile.id,
            profile.status,
            extra={"user_id": profile.id, "access_error": AccessError.unknown.value},
        )
        return AccessVerdict.deny(
            AccessError.unknown, identity=identity, profile=profile
        )

    if status is not ProfileStatus.approved:
        if policy.oauth_bypass_approval and identity.is_oauth(policy.oauth_providers):
            # OAuth sign-ins are treated as pre-verified; see DESIGN.md.
            logger.warning(
                "Approval check bypassed for %s profile %s via %s",
                status.value,
                profile.id,
                identity.provider,
                extra={"user_id": profile.id},
            )
        else:
            error = (
                AccessError.rejected
                if status is ProfileStatus.rejected
                else AccessError.pending
            )
            return AccessVerdict.deny(error, identity=identity, profile=profile)

    if required_role is not None:
        required = ProfileRole(required_role)
        if profile.effective_role is not required:
            return AccessVerdict.deny(
                AccessError.role_mismatch,
                identity=identity,
                profile=profile,
                message=ERROR_MESSAGES[AccessError.role_mismatch].format(
                    role=required.value
                ),
            )

    return AccessVerdict.allow(identity, profile)
