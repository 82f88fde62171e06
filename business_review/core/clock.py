"""Timestamps are naive UTC throughout the service."""
from datetime import datetime, timedelta, timezone
from typing import Optional

_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def monotonic_after(previous: Optional[datetime], now: Optional[datetime] = None) -> datetime:
    """Return `now`, nudged forward so it sorts strictly after `previous`."""
    now = now or utcnow()
    if previous is not None and now <= previous:
        return previous + _TICK
    return now
