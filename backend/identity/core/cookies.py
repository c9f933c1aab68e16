from __future__ import annotations

from fastapi import Response

from identity.core.settings import get_settings


SESSION_COOKIE_NAME = "identity_session"
XSRF_HEADER_NAME = "x-xsrf-token"

# Sessions do not expire on a timer; keep the browser cookie for a year.
SESSION_COOKIE_MAX_AGE = 365 * 24 * 60 * 60


def set_session_cookie(resp: Response, token: str) -> None:
    settings = get_settings()
    resp.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=SESSION_COOKIE_MAX_AGE,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(resp: Response) -> None:
    settings = get_settings()
    resp.delete_cookie(key=SESSION_COOKIE_NAME, path="/", samesite="lax", secure=settings.cookie_secure)
