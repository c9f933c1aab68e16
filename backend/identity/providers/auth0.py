from __future__ import annotations

import logging

import requests

from identity.providers.profile import ExternalIdentityProfile

logger = logging.getLogger("identity.providers.auth0")


class IdentityProviderError(RuntimeError):
    pass


class IdentityProviderUnauthorized(IdentityProviderError):
    pass


class Auth0Client:
    """Resolves an Auth0 access token into the profile it was issued for."""

    def __init__(self, *, domain: str, timeout: float = 10.0):
        self._userinfo_url = f"https://{domain}/userinfo"
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Accept": "application/json"})

    def get_profile(self, access_token: str) -> ExternalIdentityProfile:
        try:
            resp = self._session.get(
                self._userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise IdentityProviderError("Identity provider is unreachable") from e

        if resp.status_code == 401:
            raise IdentityProviderUnauthorized("Access token was not accepted")
        if resp.status_code != 200:
            logger.warning("Identity provider returned HTTP %d", resp.status_code)
            raise IdentityProviderError(f"Identity provider returned HTTP {resp.status_code}")

        try:
            return ExternalIdentityProfile.from_payload(resp.json())
        except (ValueError, AttributeError) as e:
            # requests raises a ValueError subclass for bodies that are not JSON.
            raise IdentityProviderError(f"Malformed profile: {e}") from e
