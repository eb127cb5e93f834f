"""Date manipulation utilities"""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (negative if end is earlier)"""
    return (end - start).days


def local_today(tz_name: str) -> date:
    """Current calendar date in the given IANA timezone"""
    return datetime.now(ZoneInfo(tz_name)).date()


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
