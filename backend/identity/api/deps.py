from __future__ import annotations

from datetime import datetime
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status

from identity.core.cookies import SESSION_COOKIE_NAME, XSRF_HEADER_NAME
from identity.core.settings import get_settings
from identity.core.time import utcnow
from identity.providers.auth0 import Auth0Client, IdentityProviderError, IdentityProviderUnauthorized
from identity.providers.profile import ExternalIdentityProfile


def get_request_time() -> datetime:
    return utcnow()


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(SESSION_COOKIE_NAME)


def get_xsrf_token(request: Request) -> str | None:
    return request.headers.get(XSRF_HEADER_NAME)


@lru_cache
def get_identity_provider() -> Auth0Client:
    settings = get_settings()
    return Auth0Client(domain=settings.auth0_domain, timeout=settings.identity_provider_timeout_seconds)


def get_identity_profile(
    request: Request,
    provider: Auth0Client = Depends(get_identity_provider),
) -> ExternalIdentityProfile:
    scheme, _, access_token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not access_token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing access token")

    try:
        return provider.get_profile(access_token.strip())
    except IdentityProviderUnauthorized:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access token rejected")
    except IdentityProviderError:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Identity provider unavailable")
