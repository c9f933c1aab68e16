from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Insert, literal_column, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from identity.models.enums import Role, UserState
from identity.models.user import User


@dataclass(frozen=True)
class UpsertedUser:
    user_id: int
    time_created: datetime
    agreed_to_cookie_policy: bool
    created: bool


def _dialect_insert(name: str):
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise NotImplementedError(f"User upsert is not supported on {name!r}")


def build_user_upsert(
    dialect_name: str,
    *,
    identity_hash: str,
    external_identity_id: str,
    external_profile: dict,
    agreed_to_cookie_policy: bool,
    request_time: datetime,
    role: Role = Role.REGULAR,
) -> Insert:
    users = User.__table__
    insert = _dialect_insert(dialect_name)

    stmt = insert(users).values(
        state=int(UserState.ACTIVE),
        role=int(role),
        agreed_to_cookie_policy=agreed_to_cookie_policy,
        external_identity_id=external_identity_id,
        external_identity_hash=identity_hash,
        external_profile=external_profile,
        time_created=request_time,
        time_last_updated=request_time,
        time_removed=None,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[users.c.external_identity_hash],
        set_={
            "state": int(UserState.ACTIVE),
            "external_identity_id": stmt.excluded.external_identity_id,
            "external_profile": stmt.excluded.external_profile,
            "agreed_to_cookie_policy": or_(
                users.c.agreed_to_cookie_policy,
                stmt.excluded.agreed_to_cookie_policy,
            ),
            "time_last_updated": stmt.excluded.time_last_updated,
            "time_removed": None,
        },
    )

    returning = [
        users.c.id,
        users.c.time_created,
        users.c.time_last_updated,
        users.c.agreed_to_cookie_policy,
    ]
    if dialect_name == "postgresql":
        # xmax is 0 only on a row version written by an INSERT.
        returning.append((literal_column("xmax") == 0).label("inserted"))
    return stmt.returning(*returning)


def upsert_user(
    db: Session,
    *,
    identity_hash: str,
    external_identity_id: str,
    external_profile: dict,
    agreed_to_cookie_policy: bool,
    request_time: datetime,
    role: Role = Role.REGULAR,
) -> UpsertedUser:
    """Insert the user for an identity hash, or refresh the existing row.

    The merge runs inside a single INSERT ... ON CONFLICT statement so that
    concurrent sign-ins for one identity converge on one row. On conflict the
    profile and timestamp are refreshed, the user is reactivated, the role and
    creation time are kept, and cookie consent is OR-ed with the stored value.

    On PostgreSQL ``created`` comes from the row's ``xmax``. SQLite has no
    equivalent, so there a row counts as created when its creation and update
    times are equal; two upserts of one identity within the same request tick
    both report created.
    """
    dialect_name = db.get_bind().dialect.name
    stmt = build_user_upsert(
        dialect_name,
        identity_hash=identity_hash,
        external_identity_id=external_identity_id,
        external_profile=external_profile,
        agreed_to_cookie_policy=agreed_to_cookie_policy,
        request_time=request_time,
        role=role,
    )

    row = db.execute(stmt).one()
    if dialect_name == "postgresql":
        created = bool(row.inserted)
    else:
        created = row.time_created == row.time_last_updated
    return UpsertedUser(
        user_id=row.id,
        time_created=row.time_created,
        agreed_to_cookie_policy=bool(row.agreed_to_cookie_policy),
        created=created,
    )


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id, populate_existing=True)


def find_user_by_identity_hash(db: Session, identity_hash: str) -> User | None:
    stmt = select(User).where(
        User.external_identity_hash == identity_hash,
        User.state == int(UserState.ACTIVE),
    )
    return db.execute(stmt.execution_options(populate_existing=True)).scalars().first()


def find_users_by_ids(db: Session, user_ids: Sequence[int]) -> list[User]:
    # Callers bound len(user_ids); see Settings.max_users_info_batch.
    if not user_ids:
        return []
    stmt = select(User).where(User.id.in_(list(user_ids)), User.state == int(UserState.ACTIVE))
    return list(db.execute(stmt).scalars().all())


def set_user_cookie_consent(db: Session, *, user_id: int, request_time: datetime) -> bool:
    """Mark the user as having agreed. Returns True when the flag flipped."""
    stmt = (
        update(User)
        .where(User.id == user_id, User.agreed_to_cookie_policy.is_(False))
        .values(agreed_to_cookie_policy=True, time_last_updated=request_time)
    )
    return db.execute(stmt).rowcount == 1
