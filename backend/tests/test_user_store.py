from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite

from helpers import at, make_profile
from identity.models.enums import Role, UserState
from identity.models.user import User
from identity.repos.users import (
    build_user_upsert,
    find_user_by_identity_hash,
    find_users_by_ids,
    get_user_by_id,
    set_user_cookie_consent,
    upsert_user,
)


def _upsert(db, profile, *, agreed=False, minutes=0):
    result = upsert_user(
        db,
        identity_hash=profile.identity_hash(),
        external_identity_id=profile.external_id,
        external_profile=profile.to_snapshot(),
        agreed_to_cookie_policy=agreed,
        request_time=at(minutes),
    )
    db.commit()
    return result


def test_upsert_is_idempotent_per_identity(db):
    profile = make_profile()

    first = _upsert(db, profile, minutes=0)
    second = _upsert(db, profile, minutes=5)

    assert first.created is True
    assert second.created is False
    assert first.user_id == second.user_id
    assert db.execute(select(func.count()).select_from(User)).scalar_one() == 1


def test_upsert_refreshes_profile_and_keeps_creation_time(db):
    first = _upsert(db, make_profile(name="Ada"), minutes=0)
    _upsert(db, make_profile(name="Ada King"), minutes=10)

    user = get_user_by_id(db, first.user_id)
    assert user.external_profile["name"] == "Ada King"
    assert user.time_created.replace(tzinfo=None) == at(0).replace(tzinfo=None)
    assert user.time_last_updated.replace(tzinfo=None) == at(10).replace(tzinfo=None)
    assert user.role == Role.REGULAR


def test_upsert_merges_consent_with_or(db):
    profile = make_profile()

    assert _upsert(db, profile, agreed=False, minutes=0).agreed_to_cookie_policy is False
    assert _upsert(db, profile, agreed=True, minutes=1).agreed_to_cookie_policy is True
    # A later anonymous session without consent must not revoke it.
    assert _upsert(db, profile, agreed=False, minutes=2).agreed_to_cookie_policy is True


def test_upsert_reactivates_removed_user(db):
    profile = make_profile()
    first = _upsert(db, profile, minutes=0)
    db.execute(
        update(User)
        .where(User.id == first.user_id)
        .values(state=int(UserState.REMOVED), time_removed=at(1))
    )
    db.commit()
    assert find_user_by_identity_hash(db, profile.identity_hash()) is None

    again = _upsert(db, profile, minutes=2)

    assert again.user_id == first.user_id
    assert again.created is False
    user = find_user_by_identity_hash(db, profile.identity_hash())
    assert user is not None
    assert user.state == UserState.ACTIVE
    assert user.time_removed is None


def test_find_users_by_ids_skips_missing_and_removed(db):
    a = _upsert(db, make_profile("auth0|a"), minutes=0)
    b = _upsert(db, make_profile("auth0|b"), minutes=1)
    db.execute(update(User).where(User.id == b.user_id).values(state=int(UserState.REMOVED)))
    db.commit()

    found = find_users_by_ids(db, [a.user_id, b.user_id, 999])

    assert [u.id for u in found] == [a.user_id]
    assert find_users_by_ids(db, []) == []


def test_set_user_cookie_consent_reports_flip_once(db):
    user = _upsert(db, make_profile(), minutes=0)

    assert set_user_cookie_consent(db, user_id=user.user_id, request_time=at(1)) is True
    assert set_user_cookie_consent(db, user_id=user.user_id, request_time=at(2)) is False
    db.commit()
    assert get_user_by_id(db, user.user_id).agreed_to_cookie_policy is True


def _compiled_upsert(dialect_name, dialect):
    profile = make_profile()
    stmt = build_user_upsert(
        dialect_name,
        identity_hash=profile.identity_hash(),
        external_identity_id=profile.external_id,
        external_profile=profile.to_snapshot(),
        agreed_to_cookie_policy=False,
        request_time=at(0),
    )
    return str(stmt.compile(dialect=dialect))


def test_postgres_upsert_reports_insert_from_xmax():
    sql = _compiled_upsert("postgresql", postgresql.dialect())

    assert "ON CONFLICT (external_identity_hash) DO UPDATE" in sql
    assert "xmax = " in sql
    assert "AS inserted" in sql


def test_sqlite_upsert_falls_back_to_timestamps():
    sql = _compiled_upsert("sqlite", sqlite.dialect())

    assert "ON CONFLICT (external_identity_hash) DO UPDATE" in sql
    assert "xmax" not in sql


def test_sqlite_same_tick_upserts_both_report_created(db):
    profile = make_profile()

    first = _upsert(db, profile, minutes=0)
    second = _upsert(db, profile, minutes=0)

    assert first.user_id == second.user_id
    assert (first.created, second.created) == (True, True)
    assert _upsert(db, profile, minutes=1).created is False
