from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return an aware UTC timestamp.

    Request handlers take this once per request and pass it down as the
    request time, so every row and event written by one call shares a tick.
    """

    return datetime.now(timezone.utc)


def as_aware_utc(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone=True columns; normalize to aware UTC.
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
