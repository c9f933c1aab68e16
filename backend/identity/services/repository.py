"""Session and user lifecycle.

Every public function here runs as one database transaction: store writes and
event-log appends either all commit or all roll back. No in-process state is
shared between calls; concurrent requests coordinate through row locks and
the unique index on users.external_identity_hash.
"""

from __future__ import annotations

import functools
import logging
import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from identity.core.security import new_xsrf_token, parse_session_token, xsrf_tokens_match
from identity.db.session import transaction
from identity.models.enums import SessionEventType, SessionState, UserEventType
from identity.models.session import Session as DbSession
from identity.providers.profile import ExternalIdentityProfile
from identity.repos.events import (
    append_session_event,
    append_user_event,
    has_user_event,
    list_session_events,
    list_user_events,
)
from identity.repos.sessions import (
    expire_session as expire_session_row,
    find_active_session,
    insert_session,
    link_session_to_user,
    set_session_cookie_consent,
)
from identity.repos.users import (
    find_user_by_identity_hash,
    find_users_by_ids,
    get_user_by_id,
    set_user_cookie_consent,
    upsert_user,
)
from identity.services.errors import (
    RepositoryError,
    SessionNotFoundError,
    UserNotFoundError,
    XsrfTokenMismatchError,
)
from identity.services.views import EventView, PublicUserView, SessionView

logger = logging.getLogger("identity.repository")


def _store_errors(fn):
    # Domain errors pass through; anything the database raises becomes a RepositoryError.
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as e:
            raise RepositoryError(f"{fn.__name__} failed: {e.__class__.__name__}") from e

    return wrapper


def _short(session_id: uuid.UUID) -> str:
    # Session ids are bearer tokens; log only a prefix.
    return str(session_id)[:8]


def _require_session_id(session_token: str | None) -> uuid.UUID:
    session_id = parse_session_token(session_token)
    if session_id is None:
        raise SessionNotFoundError("Session does not exist")
    return session_id


def _load_active_session(db: Session, session_id: uuid.UUID, *, for_update: bool = False) -> DbSession:
    row = find_active_session(db, session_id, for_update=for_update)
    if row is None:
        raise SessionNotFoundError("Session does not exist")
    return row


def _check_xsrf(row: DbSession, xsrf_token: str | None) -> None:
    if not xsrf_tokens_match(xsrf_token, row.xsrf_token):
        logger.warning("XSRF token mismatch for session %s", _short(row.id))
        raise XsrfTokenMismatchError("XSRF token does not match")


def _session_view(db: Session, session_id: uuid.UUID) -> SessionView:
    row = _load_active_session(db, session_id)
    user = get_user_by_id(db, row.user_id) if row.user_id is not None else None
    return SessionView.from_row(row, user)


@_store_errors
def get_or_create_session(
    db: Session,
    *,
    session_token: str | None,
    request_time: datetime,
) -> tuple[SessionView, bool]:
    """Return the caller's live session, or start a new anonymous one.

    A live session is returned untouched: no renewal, no event. The boolean is
    True when a session was created by this call.
    """
    session_id = parse_session_token(session_token)

    with transaction(db):
        if session_id is not None:
            existing = find_active_session(db, session_id)
            if existing is not None:
                return _session_view(db, existing.id), False

        row = insert_session(
            db,
            xsrf_token=new_xsrf_token(),
            agreed_to_cookie_policy=False,
            request_time=request_time,
        )
        append_session_event(db, session_id=row.id, event_type=SessionEventType.CREATED, timestamp=request_time)
        view = _session_view(db, row.id)

    logger.info("Created session %s", _short(view.id))
    return view, True


@_store_errors
def get_session(db: Session, *, session_token: str | None) -> SessionView:
    session_id = _require_session_id(session_token)
    with transaction(db):
        return _session_view(db, session_id)


@_store_errors
def expire_session(
    db: Session,
    *,
    session_token: str | None,
    xsrf_token: str | None,
    request_time: datetime,
) -> None:
    session_id = _require_session_id(session_token)

    with transaction(db):
        row = _load_active_session(db, session_id, for_update=True)
        _check_xsrf(row, xsrf_token)

        if expire_session_row(db, session_id=session_id, request_time=request_time) == 0:
            raise SessionNotFoundError("Session does not exist")
        append_session_event(db, session_id=session_id, event_type=SessionEventType.EXPIRED, timestamp=request_time)

    logger.info("Expired session %s", _short(session_id))


@_store_errors
def agree_to_cookie_policy_for_session(
    db: Session,
    *,
    session_token: str | None,
    xsrf_token: str | None,
    request_time: datetime,
) -> SessionView:
    """Record cookie-policy consent on a session and, when linked, on its user."""
    session_id = _require_session_id(session_token)

    with transaction(db):
        row = _load_active_session(db, session_id, for_update=True)
        _check_xsrf(row, xsrf_token)
        already_agreed = row.agreed_to_cookie_policy
        user_id = row.user_id

        if not already_agreed:
            if set_session_cookie_consent(db, session_id=session_id, request_time=request_time) is None:
                raise SessionNotFoundError("Session does not exist")
            append_session_event(
                db,
                session_id=session_id,
                event_type=SessionEventType.AGREED_TO_COOKIE_POLICY,
                timestamp=request_time,
            )

        if user_id is not None:
            set_user_cookie_consent(db, user_id=user_id, request_time=request_time)
            # The user log records the first consent only.
            if not has_user_event(db, user_id=user_id, event_type=UserEventType.AGREED_TO_COOKIE_POLICY):
                append_user_event(
                    db,
                    user_id=user_id,
                    event_type=UserEventType.AGREED_TO_COOKIE_POLICY,
                    timestamp=request_time,
                )

        view = _session_view(db, session_id)

    if not already_agreed:
        logger.info("Session %s agreed to the cookie policy", _short(session_id))
    return view


@_store_errors
def get_or_create_user_on_session(
    db: Session,
    *,
    session_token: str | None,
    xsrf_token: str | None,
    profile: ExternalIdentityProfile,
    request_time: datetime,
) -> tuple[SessionView, bool]:
    """Provision the user behind an identity profile and bind it to the session.

    The user row is upserted on the identity hash, seeded with the session's
    consent. A session already bound to a different user is reported as not
    found; sessions are never moved between users. The boolean is True when
    the user row was created by this call.
    """
    session_id = _require_session_id(session_token)
    identity_hash = profile.identity_hash()

    with transaction(db):
        row = _load_active_session(db, session_id, for_update=True)
        _check_xsrf(row, xsrf_token)
        linked_user_id = row.user_id
        session_agreed = row.agreed_to_cookie_policy

        user = upsert_user(
            db,
            identity_hash=identity_hash,
            external_identity_id=profile.external_id,
            external_profile=profile.to_snapshot(),
            agreed_to_cookie_policy=session_agreed,
            request_time=request_time,
        )

        if linked_user_id is not None and linked_user_id != user.user_id:
            logger.warning(
                "Session %s is linked to user %d, refusing to link user %d",
                _short(session_id),
                linked_user_id,
                user.user_id,
            )
            raise SessionNotFoundError("Session is linked to another user")

        append_user_event(
            db,
            user_id=user.user_id,
            event_type=UserEventType.CREATED if user.created else UserEventType.RECREATED,
            timestamp=request_time,
        )

        if user.agreed_to_cookie_policy and not has_user_event(
            db, user_id=user.user_id, event_type=UserEventType.AGREED_TO_COOKIE_POLICY
        ):
            append_user_event(
                db,
                user_id=user.user_id,
                event_type=UserEventType.AGREED_TO_COOKIE_POLICY,
                timestamp=request_time,
            )

        if linked_user_id is None:
            linked = link_session_to_user(
                db,
                session_id=session_id,
                user_id=user.user_id,
                agreed_to_cookie_policy=user.agreed_to_cookie_policy,
                request_time=request_time,
            )
            if not linked:
                raise SessionNotFoundError("Session does not exist")
            append_session_event(
                db,
                session_id=session_id,
                event_type=SessionEventType.LINKED_WITH_USER,
                timestamp=request_time,
                data={"user_id": user.user_id},
            )
            if user.agreed_to_cookie_policy != session_agreed:
                append_session_event(
                    db,
                    session_id=session_id,
                    event_type=SessionEventType.AGREED_TO_COOKIE_POLICY,
                    timestamp=request_time,
                )

        view = _session_view(db, session_id)

    logger.info(
        "%s user %d on session %s",
        "Created" if user.created else "Recreated",
        user.user_id,
        _short(session_id),
    )
    return view, user.created


@_store_errors
def get_user_on_session(
    db: Session,
    *,
    session_token: str | None,
    profile: ExternalIdentityProfile,
) -> SessionView:
    session_id = _require_session_id(session_token)

    with transaction(db):
        user = find_user_by_identity_hash(db, profile.identity_hash())
        if user is None:
            raise UserNotFoundError("User does not exist")

        row = _load_active_session(db, session_id)
        if row.state != SessionState.ACTIVE_AND_LINKED_WITH_USER or row.user_id != user.id:
            raise SessionNotFoundError("Session is not linked to this user")

        return SessionView.from_row(row, user)


@_store_errors
def get_users_info(db: Session, *, user_ids: Sequence[int], max_batch: int) -> list[PublicUserView]:
    """Public projections for a batch of users, in request order.

    Raises ValueError for batches over max_batch; the HTTP layer is expected to
    have rejected those already.
    """
    wanted = list(dict.fromkeys(user_ids))
    if len(wanted) > max_batch:
        raise ValueError(f"At most {max_batch} users can be requested at once")

    with transaction(db):
        views = {u.id: PublicUserView.from_row(u) for u in find_users_by_ids(db, wanted)}

    missing = set(wanted) - set(views)
    if missing:
        raise UserNotFoundError(
            f"Users do not exist: {', '.join(str(i) for i in sorted(missing))}",
            missing_ids=missing,
        )
    return [views[i] for i in wanted]


@_store_errors
def get_user_events(db: Session, *, profile: ExternalIdentityProfile) -> list[EventView]:
    with transaction(db):
        user = find_user_by_identity_hash(db, profile.identity_hash())
        if user is None:
            raise UserNotFoundError("User does not exist")
        user_id = user.id
        events = [EventView.from_row(e) for e in list_user_events(db, user_id=user_id)]

    # Every user has at least a Created event.
    if not events:
        raise UserNotFoundError("User does not have any events", missing_ids=[user_id])
    return events


@_store_errors
def get_session_events(db: Session, *, session_token: str | None) -> list[EventView]:
    session_id = _require_session_id(session_token)
    with transaction(db):
        _load_active_session(db, session_id)
        events = [EventView.from_row(e) for e in list_session_events(db, session_id=session_id)]

    if not events:
        raise SessionNotFoundError("Session does not have any events")
    return events
