from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from identity.models.enums import LIVE_SESSION_STATES, SessionState
from identity.models.session import Session as DbSession

# None of these functions commit; callers own the transaction.

_LIVE_STATES = [int(s) for s in LIVE_SESSION_STATES]


def insert_session(
    db: Session,
    *,
    xsrf_token: str,
    agreed_to_cookie_policy: bool,
    request_time: datetime,
    session_id: uuid.UUID | None = None,
    state: SessionState = SessionState.ACTIVE,
) -> DbSession:
    s = DbSession(
        id=session_id or uuid.uuid4(),
        state=int(state),
        xsrf_token=xsrf_token,
        agreed_to_cookie_policy=agreed_to_cookie_policy,
        user_id=None,
        time_created=request_time,
        time_last_updated=request_time,
        time_removed=None,
    )
    db.add(s)
    db.flush()
    return s


def find_active_session(db: Session, session_id: uuid.UUID, *, for_update: bool = False) -> DbSession | None:
    # Expired rows stay in the table but are never returned.
    stmt = select(DbSession).where(DbSession.id == session_id, DbSession.state.in_(_LIVE_STATES))
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt.execution_options(populate_existing=True)).scalars().first()


def link_session_to_user(
    db: Session,
    *,
    session_id: uuid.UUID,
    user_id: int,
    agreed_to_cookie_policy: bool,
    request_time: datetime,
) -> bool:
    """Attach a user to a session that has none yet.

    Returns False when the session is gone or was already linked.
    """
    stmt = (
        update(DbSession)
        .where(
            DbSession.id == session_id,
            DbSession.state.in_(_LIVE_STATES),
            DbSession.user_id.is_(None),
        )
        .values(
            state=int(SessionState.ACTIVE_AND_LINKED_WITH_USER),
            user_id=user_id,
            agreed_to_cookie_policy=agreed_to_cookie_policy,
            time_last_updated=request_time,
        )
    )
    return db.execute(stmt).rowcount == 1


def expire_session(db: Session, *, session_id: uuid.UUID, request_time: datetime) -> int:
    stmt = (
        update(DbSession)
        .where(DbSession.id == session_id, DbSession.state.in_(_LIVE_STATES))
        .values(
            state=int(SessionState.EXPIRED),
            time_last_updated=request_time,
            time_removed=request_time,
        )
    )
    return db.execute(stmt).rowcount


def set_session_cookie_consent(db: Session, *, session_id: uuid.UUID, request_time: datetime) -> DbSession | None:
    stmt = (
        update(DbSession)
        .where(DbSession.id == session_id, DbSession.state.in_(_LIVE_STATES))
        .values(agreed_to_cookie_policy=True, time_last_updated=request_time)
        .returning(DbSession)
    )
    return db.execute(stmt).scalars().first()
