from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from identity.models.enums import SessionEventType, UserEventType
from identity.models.events import SessionEvent, UserEvent


def append_session_event(
    db: Session,
    *,
    session_id: uuid.UUID,
    event_type: SessionEventType,
    timestamp: datetime,
    data: dict | None = None,
) -> SessionEvent:
    # Never store secrets here. Keep data small and deterministic.
    ev = SessionEvent(session_id=session_id, type=int(event_type), timestamp=timestamp, data=data)
    db.add(ev)
    db.flush()
    return ev


def append_user_event(
    db: Session,
    *,
    user_id: int,
    event_type: UserEventType,
    timestamp: datetime,
    data: dict | None = None,
) -> UserEvent:
    ev = UserEvent(user_id=user_id, type=int(event_type), timestamp=timestamp, data=data)
    db.add(ev)
    db.flush()
    return ev


def list_session_events(db: Session, *, session_id: uuid.UUID) -> list[SessionEvent]:
    stmt = (
        select(SessionEvent)
        .where(SessionEvent.session_id == session_id)
        .order_by(SessionEvent.timestamp.asc(), SessionEvent.id.asc())
    )
    return list(db.execute(stmt).scalars().all())


def list_user_events(db: Session, *, user_id: int) -> list[UserEvent]:
    stmt = select(UserEvent).where(UserEvent.user_id == user_id).order_by(UserEvent.timestamp.asc(), UserEvent.id.asc())
    return list(db.execute(stmt).scalars().all())


def has_user_event(db: Session, *, user_id: int, event_type: UserEventType) -> bool:
    stmt = select(func.count()).select_from(UserEvent).where(
        UserEvent.user_id == user_id,
        UserEvent.type == int(event_type),
    )
    return (db.execute(stmt).scalar() or 0) > 0
