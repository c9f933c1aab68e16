from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from identity.services.views import EventView, PublicUserView, SessionView, UserView


class UserResponse(BaseModel):
    id: int
    state: int
    role: int
    agreed_to_cookie_policy: bool
    name: str
    picture_uri: str
    locale: str
    time_created: datetime
    time_last_updated: datetime

    @classmethod
    def from_view(cls, u: UserView) -> "UserResponse":
        return cls(
            id=u.id,
            state=int(u.state),
            role=int(u.role),
            agreed_to_cookie_policy=u.agreed_to_cookie_policy,
            name=u.name,
            picture_uri=u.picture_uri,
            locale=u.locale,
            time_created=u.time_created,
            time_last_updated=u.time_last_updated,
        )


class SessionResponse(BaseModel):
    id: str
    state: int
    xsrf_token: str
    agreed_to_cookie_policy: bool
    user: UserResponse | None = None
    time_created: datetime
    time_last_updated: datetime

    @classmethod
    def from_view(cls, s: SessionView) -> "SessionResponse":
        return cls(
            id=str(s.id),
            state=int(s.state),
            xsrf_token=s.xsrf_token,
            agreed_to_cookie_policy=s.agreed_to_cookie_policy,
            user=UserResponse.from_view(s.user) if s.user is not None else None,
            time_created=s.time_created,
            time_last_updated=s.time_last_updated,
        )


class PublicUserResponse(BaseModel):
    id: int
    name: str
    picture_uri: str

    @classmethod
    def from_view(cls, u: PublicUserView) -> "PublicUserResponse":
        return cls(id=u.id, name=u.name, picture_uri=u.picture_uri)


class UsersInfoResponse(BaseModel):
    users: list[PublicUserResponse]


class EventResponse(BaseModel):
    id: int
    type: int
    timestamp: datetime
    data: dict | None = None

    @classmethod
    def from_view(cls, e: EventView) -> "EventResponse":
        return cls(id=e.id, type=e.type, timestamp=e.timestamp, data=e.data)
