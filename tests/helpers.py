"""Builders shared by the test modules."""

from opsdesk.auth.identity import Identity
from opsdesk.auth.service import TokenClaims
from opsdesk.profile.models import Profile, ProfileRole, ProfileStatus

TEST_UID = "test-uid"
TEST_EMAIL = "test@example.com"


def make_identity(**overrides) -> Identity:
    values = {
        "id": TEST_UID,
        "email": TEST_EMAIL,
        "email_confirmed": True,
        "provider": "password",
        "metadata": {},
    }
    values.update(overrides)
    return Identity(**values)


def make_profile(**overrides) -> Profile:
    values = {
        "id": TEST_UID,
        "email": TEST_EMAIL,
        "first_name": "Test",
        "last_name": "User",
        "full_name": "Test User",
        "role": ProfileRole.staff.value,
        "status": ProfileStatus.approved.value,
    }
    values.update(overrides)
    return Profile(**values)


def confirmed_claims(uid: str = TEST_UID, email: str = TEST_EMAIL) -> TokenClaims:
    return TokenClaims(uid=uid, email=email, email_verified=True, provider="password")
