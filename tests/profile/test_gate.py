"""Tests for opsdesk/profile/gate.py."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session, select

from opsdesk.profile.exceptions import EmailNotConfirmedError, ProfileLookupError
from opsdesk.profile.gate import ProfileGate, derive_names, profile_fields_from_identity
from opsdesk.profile.models import Profile, ProfileStatus
from tests.helpers import TEST_UID, make_identity, make_profile


class TestDeriveNames:
    def test_explicit_names_win(self):
        assert derive_names(
            {"given_name": "Ada", "family_name": "Lovelace", "name": "X Y"}
        ) == ("Ada", "Lovelace")

    def test_splits_full_name_on_first_space(self):
        names = derive_names({"full_name": "Jean Paul Sartre"})
        assert names == ("Jean", "Paul Sartre")

    def test_single_token(self):
        assert derive_names({"name": "Cher"}) == ("Cher", None)

    def test_nothing_usable(self):
        assert derive_names({"name": "   ", "given_name": 3}) == (None, None)


def test_profile_fields_from_oauth_identity():
    identity = make_identity(
        provider="google",
        metadata={"name": "Grace Hopper", "picture": "https://img/1.png"},
    )

    fields = profile_fields_from_identity(identity)

    assert fields == {
        "email": "test@example.com",
        "first_name": "Grace",
        "last_name": "Hopper",
        "full_name": "Grace Hopper",
        "avatar_url": "https://img/1.png",
    }


class TestEnsureProfile:
    def test_requires_confirmed_email(self, session: Session):
        with pytest.raises(EmailNotConfirmedError):
            ProfileGate(session).ensure_profile(make_identity(email_confirmed=False))

        assert session.get(Profile, TEST_UID) is None

    def test_creates_pending_profile_for_password_user(self, session: Session):
        profile = ProfileGate(session).ensure_profile(make_identity())

        assert profile.status == ProfileStatus.pending.value
        assert profile.role == "staff"
        assert session.get(Profile, TEST_UID) is not None

    def test_oauth_user_auto_approved(self, session: Session):
        identity = make_identity(provider="google", metadata={"name": "Ann Lee"})

        profile = ProfileGate(session).ensure_profile(identity)

        assert profile.status == ProfileStatus.approved.value
        assert profile.first_name == "Ann"

    def test_oauth_auto_approve_can_be_disabled(self, session: Session):
        gate = ProfileGate(session, oauth_auto_approve=False)

        profile = gate.ensure_profile(make_identity(provider="google"))

        assert profile.status == ProfileStatus.pending.value

    def test_is_idempotent(self, session: Session):
        gate = ProfileGate(session)
        first = gate.ensure_profile(make_identity())
        second = gate.ensure_profile(make_identity())

        assert first.id == second.id
        assert len(session.exec(select(Profile)).all()) == 1

    def test_backfills_only_empty_fields(self, session: Session):
        session.add(make_profile(first_name="Kept", last_name=None, avatar_url=None))
        session.commit()
        identity = make_identity(
            metadata={
                "given_name": "Other",
                "family_name": "Surname",
                "picture": "https://img/2.png",
            }
        )

        profile = ProfileGate(session).ensure_profile(identity)

        assert profile.first_name == "Kept"
        assert profile.last_name == "Surname"
        assert profile.avatar_url == "https://img/2.png"

    def test_existing_status_is_never_changed(self, session: Session):
        session.add(make_profile(status=ProfileStatus.rejected.value))
        session.commit()

        profile = ProfileGate(session).ensure_profile(make_identity(provider="google"))

        assert profile.status == ProfileStatus.rejected.value

    def test_concurrent_insert_returns_winner(self, session: Session):
        winner = make_profile(status=ProfileStatus.approved.value)
        gate = ProfileGate(session)
        lookups = iter([None, winner])
        gate.get_profile = MagicMock(side_effect=lambda _id: next(lookups))
        session.commit = MagicMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
        )

        profile = gate.ensure_profile(make_identity())

        assert profile is winner

    def test_database_failure_raises_lookup_error(self, session: Session):
        session.get = MagicMock(side_effect=OperationalError("SELECT", {}, Exception()))

        with pytest.raises(ProfileLookupError):
            ProfileGate(session).ensure_profile(make_identity())


class TestRegisterProfile:
    def test_creates_pending_profile_before_confirmation(self, session: Session):
        identity = make_identity(email_confirmed=False)

        profile = ProfileGate(session).register_profile(identity, " Ada ", "Lovelace")

        assert profile.status == ProfileStatus.pending.value
        assert profile.first_name == "Ada"
        assert profile.full_name == "Ada Lovelace"

    def test_returns_existing(self, session: Session, profile: Profile):
        result = ProfileGate(session).register_profile(make_identity(), "X", "Y")

        assert result.first_name == "Test"
