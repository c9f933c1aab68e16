from __future__ import annotations

from enum import IntEnum

# Values are persisted as SMALLINT; never renumber.


class SessionState(IntEnum):
    ACTIVE = 1
    ACTIVE_AND_LINKED_WITH_USER = 2
    EXPIRED = 3


LIVE_SESSION_STATES = (SessionState.ACTIVE, SessionState.ACTIVE_AND_LINKED_WITH_USER)


class SessionEventType(IntEnum):
    CREATED = 1
    EXPIRED = 2
    AGREED_TO_COOKIE_POLICY = 3
    LINKED_WITH_USER = 4


class UserState(IntEnum):
    ACTIVE = 1
    REMOVED = 2


class Role(IntEnum):
    REGULAR = 1
    ADMIN = 2


class UserEventType(IntEnum):
    CREATED = 1
    RECREATED = 2
    REMOVED = 3
    AGREED_TO_COOKIE_POLICY = 4
