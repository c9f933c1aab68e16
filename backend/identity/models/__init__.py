from identity.models.events import SessionEvent, UserEvent
from identity.models.session import Session
from identity.models.user import User

__all__ = [
    "User",
    "UserEvent",
    "Session",
    "SessionEvent",
]
