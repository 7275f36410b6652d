"""Datetime utilities for timezone-aware operations."""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime object is timezone-aware and in UTC.

    If the datetime is naive (no tzinfo), it's assumed to be UTC.
    If the datetime has a different timezone, it's converted to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def start_of_month(now: datetime) -> datetime:
    """First instant of the calendar month containing ``now``, in UTC."""
    now = ensure_utc(now)
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)


def isoformat_z(dt: datetime) -> str:
    """ISO-8601 UTC string with millisecond precision and a ``Z`` suffix."""
    return ensure_utc(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = [
    "ensure_utc",
    "isoformat_z",
    "start_of_month",
    "utcnow",
]
