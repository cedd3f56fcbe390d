"""Profile Gate: fetch or lazily create the profile for an identity.

The gate is the only place that inserts into ``profiles``. Inserts race
with concurrent sign-ins for the same identity (several tabs, nested
guards), so a primary-key conflict is read as "someone else created it"
and the winning row is returned.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from opsdesk.auth.identity import Identity
from opsdesk.profile.exceptions import EmailNotConfirmedError, ProfileLookupError
from opsdesk.profile.models import Profile, ProfileRole, ProfileStatus

logger = logging.getLogger(__name__)

_BACKFILL_FIELDS = ("email", "first_name", "last_name", "full_name", "avatar_url")


def _clean(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def derive_names(metadata: Mapping[str, Any]) -> tuple[str | None, str | None]:
    """Return (first_name, last_name) from provider metadata.

    Explicit given/family names win. Otherwise the combined ``full_name`` or
    ``name`` is split on whitespace: the first token is the first name and
    the remainder the last name.
    """
    first = _clean(metadata.get("given_name")) or _clean(metadata.get("first_name"))
    last = _clean(metadata.get("family_name")) or _clean(metadata.get("last_name"))
    if first or last:
        return first, last

    combined = _clean(metadata.get("full_name")) or _clean(metadata.get("name"))
    if not combined:
        return None, None
    parts = combined.split()
    return parts[0], (" ".join(parts[1:]) or None)


def profile_fields_from_identity(identity: Identity) -> dict[str, str | None]:
    """Build the display fields a new or backfilled profile gets."""
    metadata = identity.metadata
    first_name, last_name = derive_names(metadata)
    full_name = _clean(metadata.get("full_name")) or _clean(metadata.get("name"))
    if full_name is None and (first_name or last_name):
        full_name = " ".join(p for p in (first_name, last_name) if p)
    return {
        "email": identity.email,
        "first_name": first_name,
        "last_name": last_name,
        "full_name": full_name,
        "avatar_url": _clean(metadata.get("avatar_url"))
        or _clean(metadata.get("picture")),
    }


class ProfileGate:
    """Get-or-create access to profiles for authenticated identities."""

    def __init__(
        self,
        session: Session,
        *,
        oauth_providers: frozenset[str] = frozenset({"google", "oauth"}),
        oauth_auto_approve: bool = True,
    ):
        self._session = session
        self._oauth_providers = oauth_providers
        self._oauth_auto_approve = oauth_auto_approve

    def get_profile(self, profile_id: str) -> Profile | None:
        """Look up a profile without creating it.

        Raises:
            ProfileLookupError: If the database call fails
        """
        try:
            return self._session.get(Profile, profile_id)
        except SQLAlchemyError as e:
            logger.error("Profile lookup failed for %s: %s", profile_id, e)
            raise ProfileLookupError() from e

    def ensure_profile(self, identity: Identity) -> Profile:
        """Return the identity's profile, creating it on first sign-in.

        Existing profiles only get their empty display fields filled in;
        values the user already edited are kept.

        Args:
            identity: Authenticated identity from the session resolver

        Returns:
            The stored Profile

        Raises:
            EmailNotConfirmedError: If the identity's email is unconfirmed
            ProfileLookupError: If the lookup or insert fails
        """
        if not identity.email_confirmed:
            raise EmailNotConfirmedError()

        fields = profile_fields_from_identity(identity)
        profile = self.get_profile(identity.id)
        if profile is not None:
            return self._backfill(profile, fields)

        return self._insert(
            Profile(
                id=identity.id,
                role=ProfileRole.staff.value,
                status=self._initial_status(identity).value,
                **fields,
            )
        )

    def register_profile(
        self, identity: Identity, first_name: str, last_name: str
    ) -> Profile:
        """Create the pending profile for a password sign-up.

        Sign-up happens before the email is confirmed, so the confirmation
        precondition of ensure_profile does not apply here.
        """
        existing = self.get_profile(identity.id)
        if existing is not None:
            return existing

        first_name = first_name.strip()
        last_name = last_name.strip()
        return self._insert(
            Profile(
                id=identity.id,
                email=identity.email,
                first_name=first_name,
                last_name=last_name,
                full_name=f"{first_name} {last_name}".strip(),
                role=ProfileRole.staff.value,
                status=self._initial_status(identity).value,
            )
        )

    def _initial_status(self, identity: Identity) -> ProfileStatus:
        if self._oauth_auto_approve and identity.is_oauth(self._oauth_providers):
            return ProfileStatus.approved
        return ProfileStatus.pending

    def _insert(self, profile: Profile) -> Profile:
        try:
            self._session.add(profile)
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.info("Profile %s already exists, re-fetching", profile.id)
            existing = self.get_profile(profile.id)
            if existing is None:
                raise ProfileLookupError("Profile insert conflicted") from None
            return existing
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("Profile insert failed for %s: %s", profile.id, e)
            raise ProfileLookupError("Unable to create user profile") from e

        self._session.refresh(profile)
        logger.info(
            "Created profile %s with status %s",
            profile.id,
            profile.status,
            extra={"user_id": profile.id},
        )
        return profile

    def _backfill(self, profile: Profile, fields: Mapping[str, str | None]) -> Profile:
        changed = False
        for name in _BACKFILL_FIELDS:
            value = fields.get(name)
            if value and not getattr(profile, name):
                setattr(profile, name, value)
                changed = True
        if not changed:
            return profile

        try:
            self._session.add(profile)
            self._session.commit()
            self._session.refresh(profile)
        except SQLAlchemyError as e:
            self._session.rollback()
            raise ProfileLookupError("Unable to update user profile") from e
        return profile
