"""Tests for opsdesk/access/decision.py."""

import pytest
from hypothesis import given
from hypothesis import settings as hypothesis_settings
from hypothesis import strategies as st

from opsdesk.access.decision import decide_access
from opsdesk.access.models import ERROR_MESSAGES, AccessError, AccessPolicy
from opsdesk.profile.models import ProfileRole, ProfileStatus
from tests.helpers import make_identity, make_profile

STRICT = AccessPolicy(oauth_bypass_approval=False)


class TestRuleOrder:
    def test_no_identity_is_no_session(self):
        verdict = decide_access(None, make_profile())

        assert verdict.error is AccessError.no_session
        assert verdict.is_authenticated is False
        assert verdict.message == "No active session found"

    def test_unconfirmed_email_wins_over_missing_profile(self):
        verdict = decide_access(make_identity(email_confirmed=False), None)

        assert verdict.error is AccessError.email_not_confirmed
        assert verdict.is_authenticated is True
        assert verdict.message.startswith("Email not confirmed.")

    def test_missing_profile(self):
        verdict = decide_access(make_identity(), None)

        assert verdict.error is AccessError.profile_not_found
        assert verdict.profile is None

    def test_pending(self):
        profile = make_profile(status=ProfileStatus.pending.value)

        verdict = decide_access(make_identity(), profile)

        assert verdict.error is AccessError.pending
        assert "pending approval" in verdict.message
        assert verdict.profile is profile

    def test_rejected(self):
        profile = make_profile(status=ProfileStatus.rejected.value)

        verdict = decide_access(make_identity(), profile)

        assert verdict.error is AccessError.rejected
        assert verdict.message == ERROR_MESSAGES[AccessError.rejected]

    def test_unrecognized_status_is_unknown(self):
        verdict = decide_access(make_identity(), make_profile(status="suspended"))

        assert verdict.error is AccessError.unknown

    def test_role_mismatch_names_required_role(self):
        verdict = decide_access(make_identity(), make_profile(), ProfileRole.admin)

        assert verdict.error is AccessError.role_mismatch
        assert verdict.message == "Access denied. This area requires admin role."

    def test_admin_passes_admin_requirement(self):
        profile = make_profile(role=ProfileRole.admin.value)

        verdict = decide_access(make_identity(), profile, "admin")

        assert verdict.allowed

    def test_admin_does_not_satisfy_staff_requirement(self):
        profile = make_profile(role=ProfileRole.admin.value)

        verdict = decide_access(make_identity(), profile, ProfileRole.staff)

        assert verdict.error is AccessError.role_mismatch

    def test_missing_role_counts_as_staff(self):
        verdict = decide_access(make_identity(), make_profile(role=None), "staff")

        assert verdict.allowed

    def test_allow_carries_identity_and_profile(self):
        identity = make_identity()
        profile = make_profile()

        verdict = decide_access(identity, profile)

        assert verdict.allowed
        assert verdict.is_authenticated
        assert verdict.error is None
        assert verdict.message is None
        assert verdict.identity is identity
        assert verdict.profile is profile


class TestOAuthApproval:
    @pytest.mark.parametrize("status", ["pending", "rejected"])
    def test_oauth_bypasses_approval_by_default(self, status):
        verdict = decide_access(
            make_identity(provider="google"), make_profile(status=status)
        )

        assert verdict.allowed

    @pytest.mark.parametrize("status", ["pending", "rejected"])
    def test_bypass_can_be_disabled(self, status):
        verdict = decide_access(
            make_identity(provider="google"),
            make_profile(status=status),
            policy=STRICT,
        )

        assert verdict.error is AccessError(status)

    def test_unknown_status_is_denied_for_oauth_too(self):
        verdict = decide_access(
            make_identity(provider="oauth"), make_profile(status="banned")
        )

        assert verdict.error is AccessError.unknown

    def test_bypass_does_not_skip_role_check(self):
        verdict = decide_access(
            make_identity(provider="google"),
            make_profile(status="pending"),
            ProfileRole.admin,
        )

        assert verdict.error is AccessError.role_mismatch

    def test_password_provider_never_bypasses(self):
        verdict = decide_access(
            make_identity(provider="password"), make_profile(status="pending")
        )

        assert verdict.error is AccessError.pending


statuses = st.sampled_from(["pending", "approved", "rejected", "weird", ""])
roles = st.sampled_from(["staff", "admin", None, "owner"])
required_roles = st.sampled_from([None, "staff", "admin"])
providers = st.sampled_from(["password", "google", "oauth", None])


class TestDecisionProperties:
    @hypothesis_settings(max_examples=200)
    @given(
        confirmed=st.booleans(),
        has_profile=st.booleans(),
        status=statuses,
        role=roles,
        required=required_roles,
        provider=providers,
    )
    def test_allowed_exactly_when_every_rule_passes(
        self, confirmed, has_profile, status, role, required, provider
    ):
        identity = make_identity(email_confirmed=confirmed, provider=provider)
        profile = make_profile(status=status, role=role) if has_profile else None

        verdict = decide_access(identity, profile, required, policy=STRICT)

        effective_role = role if role in ("staff", "admin") else "staff"
        expected = (
            confirmed
            and has_profile
            and status == "approved"
            and (required is None or required == effective_role)
        )
        assert verdict.allowed is expected
        assert (verdict.error is None) is expected
        if not expected:
            assert verdict.message

    @hypothesis_settings(max_examples=100)
    @given(status=statuses, role=roles, required=required_roles, provider=providers)
    def test_unconfirmed_email_always_reported_first(
        self, status, role, required, provider
    ):
        verdict = decide_access(
            make_identity(email_confirmed=False, provider=provider),
            make_profile(status=status, role=role),
            required,
        )

        assert verdict.error is AccessError.email_not_confirmed
