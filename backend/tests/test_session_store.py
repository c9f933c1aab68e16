import uuid

from helpers import at
from identity.models.enums import SessionEventType, SessionState
from identity.repos.events import append_session_event, list_session_events
from identity.repos.sessions import (
    expire_session,
    find_active_session,
    insert_session,
    link_session_to_user,
    set_session_cookie_consent,
)
from identity.repos.users import upsert_user


def _new_session(db, minutes=0):
    s = insert_session(db, xsrf_token="x" * 64, agreed_to_cookie_policy=False, request_time=at(minutes))
    db.commit()
    return s.id


def _new_user(db, external_id="auth0|abc123"):
    u = upsert_user(
        db,
        identity_hash=external_id.ljust(64, "0")[:64],
        external_identity_id=external_id,
        external_profile={},
        agreed_to_cookie_policy=False,
        request_time=at(0),
    )
    db.commit()
    return u.user_id


def test_insert_and_find(db):
    sid = _new_session(db)

    row = find_active_session(db, sid)

    assert row is not None
    assert row.state == SessionState.ACTIVE
    assert row.user_id is None
    assert row.agreed_to_cookie_policy is False
    assert find_active_session(db, uuid.uuid4()) is None


def test_insert_honours_supplied_id(db):
    sid = uuid.uuid4()
    row = insert_session(db, xsrf_token="y" * 64, agreed_to_cookie_policy=True, request_time=at(0), session_id=sid)
    db.commit()
    assert row.id == sid
    assert find_active_session(db, sid).agreed_to_cookie_policy is True


def test_expired_sessions_are_invisible(db):
    sid = _new_session(db)

    assert expire_session(db, session_id=sid, request_time=at(1)) == 1
    db.commit()

    assert find_active_session(db, sid) is None
    # Expiring twice affects nothing.
    assert expire_session(db, session_id=sid, request_time=at(2)) == 0


def test_link_only_once(db):
    sid = _new_session(db)
    first_user = _new_user(db, "auth0|first")
    second_user = _new_user(db, "auth0|second")

    assert link_session_to_user(db, session_id=sid, user_id=first_user, agreed_to_cookie_policy=True, request_time=at(1))
    assert not link_session_to_user(
        db, session_id=sid, user_id=second_user, agreed_to_cookie_policy=False, request_time=at(2)
    )
    db.commit()

    row = find_active_session(db, sid)
    assert row.user_id == first_user
    assert row.state == SessionState.ACTIVE_AND_LINKED_WITH_USER
    assert row.agreed_to_cookie_policy is True


def test_set_cookie_consent_returns_updated_row(db):
    sid = _new_session(db)

    row = set_session_cookie_consent(db, session_id=sid, request_time=at(3))
    db.commit()

    assert row is not None
    assert row.agreed_to_cookie_policy is True
    assert set_session_cookie_consent(db, session_id=uuid.uuid4(), request_time=at(4)) is None


def test_session_events_are_ordered_by_timestamp(db):
    sid = _new_session(db)
    append_session_event(db, session_id=sid, event_type=SessionEventType.EXPIRED, timestamp=at(5))
    append_session_event(db, session_id=sid, event_type=SessionEventType.CREATED, timestamp=at(0))
    append_session_event(db, session_id=sid, event_type=SessionEventType.AGREED_TO_COOKIE_POLICY, timestamp=at(2))
    db.commit()

    events = list_session_events(db, session_id=sid)

    assert [e.type for e in events] == [
        SessionEventType.CREATED,
        SessionEventType.AGREED_TO_COOKIE_POLICY,
        SessionEventType.EXPIRED,
    ]
    assert list_session_events(db, session_id=uuid.uuid4()) == []
