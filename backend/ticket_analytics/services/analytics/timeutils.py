"""Time helpers shared by the analytics passes."""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterator

SECONDS_PER_DAY = 86400


def round_half_up(value: float) -> int:
    """Nearest whole number; halves round up."""
    return math.floor(value + 0.5)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime | None) -> dt.datetime | None:
    if not isinstance(value, dt.datetime):
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def minutes_between(start: dt.datetime | None, end: dt.datetime | None) -> int:
    """Whole minutes from ``start`` to ``end``; 0 when either end is missing or the span is negative."""
    start_utc = as_utc(start)
    end_utc = as_utc(end)
    if start_utc is None or end_utc is None:
        return 0
    return max(0, round_half_up((end_utc - start_utc).total_seconds() / 60))


def days_between(start: dt.datetime | None, end: dt.datetime | None) -> int:
    start_utc = as_utc(start)
    end_utc = as_utc(end)
    if start_utc is None or end_utc is None:
        return 0
    return max(0, int((end_utc - start_utc).total_seconds() // SECONDS_PER_DAY))


def day_key(value: dt.datetime | None) -> dt.date | None:
    normalized = as_utc(value)
    if normalized is None:
        return None
    return normalized.date()


def iter_days(start: dt.date, end: dt.date) -> Iterator[dt.date]:
    cursor = start
    while cursor <= end:
        yield cursor
        cursor += dt.timedelta(days=1)


def start_of_day(day: dt.date) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.min).replace(tzinfo=dt.timezone.utc)


def end_of_day(day: dt.date) -> dt.datetime:
    return dt.datetime.combine(day, dt.time.max).replace(tzinfo=dt.timezone.utc)


def mean_minutes(values: list[int]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))
