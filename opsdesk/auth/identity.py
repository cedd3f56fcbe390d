"""The authenticated principal as known to the auth provider."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

# Firebase reports federated providers by domain.
_PROVIDER_ALIASES = {
    "google.com": "google",
    "oidc": "oauth",
}


def normalize_provider(provider: str | None) -> str | None:
    """Map provider ids to the short names used in configuration.

    ``google.com`` becomes ``google`` and ``oidc.<name>`` becomes ``oauth``.
    """
    if not provider:
        return None
    provider = provider.lower()
    if provider.startswith("oidc."):
        return "oauth"
    return _PROVIDER_ALIASES.get(provider, provider)


@dataclass(frozen=True)
class Identity:
    """Immutable view of an auth-provider user.

    ``metadata`` holds provider-supplied profile fields such as ``name``,
    ``given_name``, ``family_name`` and ``picture``.
    """

    id: str
    email: str | None = None
    email_confirmed: bool = False
    provider: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def is_oauth(self, oauth_providers: frozenset[str]) -> bool:
        return self.provider is not None and self.provider in oauth_providers
