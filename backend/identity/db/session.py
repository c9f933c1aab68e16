from __future__ import annotations

from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from identity.core.settings import get_settings


@lru_cache
def get_engine() -> Engine:
    settings = get_settings()
    # READ COMMITTED is the weakest level the repository relies on; PostgreSQL defaults to it.
    return create_engine(settings.database_url, pool_pre_ping=True)


@lru_cache
def _sessionmaker():
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    db = _sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a unit of work that either fully commits or fully rolls back."""

    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
