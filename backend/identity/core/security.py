from __future__ import annotations

import hashlib
import hmac
import secrets
import uuid


# 48 bytes of entropy, 64 url-safe characters once encoded.
XSRF_TOKEN_BYTES = 48


def new_xsrf_token() -> str:
    return secrets.token_urlsafe(XSRF_TOKEN_BYTES)


def xsrf_tokens_match(presented: str | None, stored: str) -> bool:
    if presented is None:
        return False
    # Constant-time comparison; the stored token is a per-session secret.
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))


def external_identity_hash(external_id: str) -> str:
    """Map an external identity id to the fixed-length key users are de-duplicated on.

    Returns the 64 character hex SHA-256 digest. Empty ids are hashed like any
    other string; callers reject them before getting here.
    """

    return hashlib.sha256(external_id.encode("utf-8")).hexdigest()


def parse_session_token(token: str | None) -> uuid.UUID | None:
    if not token:
        return None
    try:
        return uuid.UUID(token)
    except ValueError:
        return None
