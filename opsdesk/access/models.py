"""Access gate value types.

``AccessVerdict`` is derived on every check and never persisted.
"""

from dataclasses import dataclass
from enum import Enum

from opsdesk.auth.identity import Identity
from opsdesk.profile.models import Profile


class AccessError(str, Enum):
    """Why an access check denied."""

    no_session = "no_session"
    session_error = "session_error"
    email_not_confirmed = "email_not_confirmed"
    profile_not_found = "profile_not_found"
    profile_error = "profile_error"
    pending = "pending"
    rejected = "rejected"
    role_mismatch = "role_mismatch"
    unknown = "unknown"


ERROR_MESSAGES: dict[AccessError, str] = {
    AccessError.no_session: "No active session found",
    AccessError.session_error: "Session error",
    AccessError.email_not_confirmed: (
        "Email not confirmed. Please check your email and click the confirmation link."
    ),
    AccessError.profile_not_found: "User profile not found. Please contact support.",
    AccessError.profile_error: (
        "Unable to verify your account right now. Please try again later."
    ),
    AccessError.pending: (
        "Your account is pending approval. "
        "Please wait for an administrator to approve your account."
    ),
    AccessError.rejected: "Your account has been rejected. Please contact support.",
    AccessError.role_mismatch: "Access denied. This area requires {role} role.",
    AccessError.unknown: "Unknown account status. Please contact support.",
}

SESSION_EXPIRED_MESSAGE = "Session expired"
CHECK_FAILED_MESSAGE = "An error occurred while checking authentication"


@dataclass(frozen=True)
class AccessPolicy:
    """Provider policy applied by the access decision."""

    oauth_providers: frozenset[str] = frozenset({"google", "oauth"})
    oauth_bypass_approval: bool = True


@dataclass(frozen=True)
class AccessVerdict:
    is_authenticated: bool
    identity: Identity | None = None
    profile: Profile | None = None
    loading: bool = False
    error: AccessError | None = None
    message: str | None = None

    @property
    def allowed(self) -> bool:
        return self.is_authenticated and self.error is None and not self.loading

    @classmethod
    def pending_check(cls) -> "AccessVerdict":
        return cls(is_authenticated=False, loading=True)

    @classmethod
    def allow(cls, identity: Identity, profile: Profile) -> "AccessVerdict":
        return cls(is_authenticated=True, identity=identity, profile=profile)

    @classmethod
    def deny(
        cls,
        error: AccessError,
        *,
        identity: Identity | None = None,
        profile: Profile | None = None,
        message: str | None = None,
    ) -> "AccessVerdict":
        return cls(
            is_authenticated=identity is not None,
            identity=identity,
            profile=profile,
            error=error,
            message=message or ERROR_MESSAGES[error],
        )
