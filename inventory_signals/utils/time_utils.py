"""
Date helpers shared by the risk classifier and the suggestion engine.

``elapsed_days`` counts whole 24-hour periods: when both arguments are
datetimes the exact difference is floored, so a sale at 23:00 yesterday is
0 days old at 01:00 today. Plain dates (what catalog inputs carry) are
midnight-aligned, so their difference is the calendar-day count. Naive
datetimes are treated as UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Union

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 86_400


def to_date(value: DateLike) -> date:
    """Reduce a ``date`` or ``datetime`` to a calendar date (UTC for aware datetimes)."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def to_utc_datetime(value: DateLike) -> datetime:
    """Return an aware UTC datetime; dates become midnight UTC."""
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def elapsed_days(start: DateLike, now: DateLike) -> int:
    """Return whole days elapsed from ``start`` to ``now``.

    A ``start`` in the future (clock skew, bad catalog data) yields 0 rather
    than a negative count.

    Args:
        start: Earlier date (product creation, last sale).
        now:   Reference date for the assessment.

    Returns:
        Non-negative integer day count.
    """
    seconds = (to_utc_datetime(now) - to_utc_datetime(start)).total_seconds()
    days = int(seconds // SECONDS_PER_DAY)
    return days if days > 0 else 0


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def today() -> date:
    """Return today's UTC calendar date."""
    return utcnow().date()
