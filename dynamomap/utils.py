"""
Time helpers for TTL stamping.

DynamoDB expires items whose TTL attribute holds an epoch-seconds number in
the past. Everything here works in UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC.

    Naive datetimes are assumed to already be in UTC.

    Examples:
        >>> to_utc(datetime(2024, 1, 1, 10, 0))
        datetime.datetime(2024, 1, 1, 10, 0, tzinfo=datetime.timezone.utc)
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def epoch_seconds(dt: datetime) -> int:
    """Whole seconds since the Unix epoch."""
    return int(to_utc(dt).timestamp())


def expires_at(time_to_live: timedelta, clock: Optional[Callable[[], datetime]] = None) -> int:
    """Epoch seconds at which an item stored now with `time_to_live` expires."""
    now = (clock or utc_now)()
    return epoch_seconds(now + time_to_live)
