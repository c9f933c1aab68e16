from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from identity.core.time import as_aware_utc
from identity.models.enums import Role, SessionState, UserState
from identity.models.events import SessionEvent, UserEvent
from identity.models.session import Session as DbSession
from identity.models.user import User


@dataclass(frozen=True)
class UserView:
    id: int
    state: UserState
    role: Role
    agreed_to_cookie_policy: bool
    external_identity_hash: str
    name: str
    picture_uri: str
    locale: str
    time_created: datetime
    time_last_updated: datetime

    @classmethod
    def from_row(cls, row: User) -> "UserView":
        profile = row.external_profile or {}
        return cls(
            id=row.id,
            state=UserState(row.state),
            role=Role(row.role),
            agreed_to_cookie_policy=row.agreed_to_cookie_policy,
            external_identity_hash=row.external_identity_hash,
            name=profile.get("name", ""),
            picture_uri=profile.get("picture", ""),
            locale=profile.get("locale", ""),
            time_created=as_aware_utc(row.time_created),
            time_last_updated=as_aware_utc(row.time_last_updated),
        )


@dataclass(frozen=True)
class PublicUserView:
    """The part of a user other users may see."""

    id: int
    name: str
    picture_uri: str

    @classmethod
    def from_row(cls, row: User) -> "PublicUserView":
        profile = row.external_profile or {}
        return cls(id=row.id, name=profile.get("name", ""), picture_uri=profile.get("picture", ""))


@dataclass(frozen=True)
class SessionView:
    id: uuid.UUID
    state: SessionState
    xsrf_token: str
    agreed_to_cookie_policy: bool
    user: UserView | None
    time_created: datetime
    time_last_updated: datetime

    @classmethod
    def from_row(cls, row: DbSession, user: User | None = None) -> "SessionView":
        return cls(
            id=row.id,
            state=SessionState(row.state),
            xsrf_token=row.xsrf_token,
            agreed_to_cookie_policy=row.agreed_to_cookie_policy,
            user=UserView.from_row(user) if user is not None else None,
            time_created=as_aware_utc(row.time_created),
            time_last_updated=as_aware_utc(row.time_last_updated),
        )


@dataclass(frozen=True)
class EventView:
    id: int
    type: int
    timestamp: datetime
    data: dict | None

    @classmethod
    def from_row(cls, row: SessionEvent | UserEvent) -> "EventView":
        return cls(id=row.id, type=row.type, timestamp=as_aware_utc(row.timestamp), data=row.data)
