"""
Timestamp helpers shared by every storage backend.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to aware UTC.

    SQLite returns naive datetimes for timezone-aware columns; those are
    stored in UTC, so they are tagged rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
