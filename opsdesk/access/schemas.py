"""Access API schemas."""

from pydantic import BaseModel

from opsdesk.access.models import AccessError, AccessVerdict
from opsdesk.profile.schemas import ProfileRead


class IdentityRead(BaseModel):
    id: str
    email: str | None
    email_confirmed: bool
    provider: str | None


class VerdictRead(BaseModel):
    is_authenticated: bool
    loading: bool
    error: AccessError | None
    message: str | None
    identity: IdentityRead | None
    profile: ProfileRead | None

    @classmethod
    def from_verdict(cls, verdict: AccessVerdict) -> "VerdictRead":
        identity = verdict.identity
        return cls(
            is_authenticated=verdict.is_authenticated,
            loading=verdict.loading,
            error=verdict.error,
            message=verdict.message,
            identity=IdentityRead(
                id=identity.id,
                email=identity.email,
                email_confirmed=identity.email_confirmed,
                provider=identity.provider,
            )
            if identity
            else None,
            profile=ProfileRead.model_validate(verdict.profile)
            if verdict.profile
            else None,
        )
