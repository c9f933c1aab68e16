from __future__ import annotations

from datetime import datetime, timedelta, timezone

from identity.providers.auth0 import IdentityProviderUnauthorized
from identity.providers.profile import ExternalIdentityProfile

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def make_profile(external_id: str = "auth0|abc123", name: str = "Ada Lovelace") -> ExternalIdentityProfile:
    return ExternalIdentityProfile(
        external_id=external_id,
        display_name=name,
        picture_uri=f"https://example.com/{external_id.replace('|', '-')}.png",
        locale="en",
    )


class FakeIdentityProvider:
    """Maps access tokens to profiles; unknown tokens are rejected."""

    def __init__(self) -> None:
        self.profiles: dict[str, ExternalIdentityProfile] = {}

    def get_profile(self, access_token: str) -> ExternalIdentityProfile:
        try:
            return self.profiles[access_token]
        except KeyError:
            raise IdentityProviderUnauthorized("unknown token")
