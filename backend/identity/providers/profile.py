from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from identity.core.security import external_identity_hash


DEFAULT_LANGUAGE = "en"

_LANGUAGE_RE = re.compile(r"^[A-Za-z]{2,3}")


def language_from_locale(locale: str | None) -> str:
    # "en-US" / "pt_BR" -> "en" / "pt"
    if not locale:
        return DEFAULT_LANGUAGE
    m = _LANGUAGE_RE.match(locale.strip())
    if m is None:
        return DEFAULT_LANGUAGE
    return m.group(0).lower()


@dataclass(frozen=True)
class ExternalIdentityProfile:
    """What the identity provider vouches for about the signed-in person."""

    external_id: str
    display_name: str
    picture_uri: str
    locale: str = DEFAULT_LANGUAGE

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ExternalIdentityProfile":
        external_id = payload.get("user_id") or payload.get("sub")
        if not isinstance(external_id, str) or not external_id:
            raise ValueError("Profile is missing a user id")

        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Profile is missing a name")

        picture = payload.get("picture")
        if not isinstance(picture, str) or not picture.startswith("https://"):
            raise ValueError("Profile picture must be an https URI")

        return cls(
            external_id=external_id,
            display_name=name.strip(),
            picture_uri=picture,
            locale=language_from_locale(payload.get("locale")),
        )

    def identity_hash(self) -> str:
        return external_identity_hash(self.external_id)

    def to_snapshot(self) -> dict[str, str]:
        return {
            "name": self.display_name,
            "picture": self.picture_uri,
            "locale": self.locale,
        }
