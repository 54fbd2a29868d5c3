from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset on storage)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current UTC time, bumped past ``previous`` so successive stamps strictly increase"""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now
