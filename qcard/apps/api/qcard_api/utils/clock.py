"""UTC time helpers.

SQLite hands back naive datetimes even for timezone-aware columns, so every
comparison against "now" goes through as_utc().
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC (naive values are taken as UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when expires_at is set and already in the past."""
    if expires_at is None:
        return False
    return as_utc(expires_at) < (now or utcnow())
