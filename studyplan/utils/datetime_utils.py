"""
Timezone-aware datetime utilities.

Everything the services hand around is UTC-aware; SQLite stores naive UTC,
so repositories convert on the way in and out.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Naive datetimes are assumed to already be UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to naive UTC for storage."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(UTC).replace(tzinfo=None)


def add_days(dt: datetime, days: int) -> datetime:
    """Move a datetime by whole days, keeping its time of day."""
    return dt + timedelta(days=days)


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Return [start, end] of a UTC calendar day."""
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = datetime.combine(day, time.max, tzinfo=UTC)
    return start, end
