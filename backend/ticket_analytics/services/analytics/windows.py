"""Reporting window resolution for the analytics endpoints."""

from __future__ import annotations

import datetime as dt

from ticket_analytics.core.exceptions import InvalidWindowError
from ticket_analytics.services.analytics.timeutils import as_utc, end_of_day, start_of_day, utcnow

RANGE_PRESETS: dict[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
}
DEFAULT_RANGE = "30d"


def parse_window_bound(value: str | None, *, end: bool = False) -> dt.datetime | None:
    """Parse an ISO date or datetime; a bare date covers the whole day."""
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        if len(raw) == 10:
            day = dt.date.fromisoformat(raw)
            return end_of_day(day) if end else start_of_day(day)
        return as_utc(dt.datetime.fromisoformat(raw.replace("Z", "+00:00")))
    except ValueError as exc:
        field = "end" if end else "start"
        raise InvalidWindowError(f"Invalid {field} date", details={"field": field, "value": raw}) from exc


def resolve_window(
    range_key: str | None = None,
    start: str | None = None,
    end: str | None = None,
    *,
    now: dt.datetime | None = None,
    default_range: str = DEFAULT_RANGE,
) -> tuple[dt.datetime, dt.datetime]:
    """Explicit ``start`` and ``end`` win; otherwise the preset ending at ``now``.

    Unknown presets fall back to ``default_range``.
    """
    now_utc = as_utc(now) or utcnow()
    window_start = parse_window_bound(start)
    window_end = parse_window_bound(end, end=True)

    if window_start is None or window_end is None:
        key = (range_key or default_range).strip().lower()
        days = RANGE_PRESETS.get(key) or RANGE_PRESETS.get(default_range, RANGE_PRESETS[DEFAULT_RANGE])
        window_start = now_utc - dt.timedelta(days=days)
        window_end = now_utc

    if window_end < window_start:
        raise InvalidWindowError(
            "start must not be after end",
            details={"start": window_start.isoformat(), "end": window_end.isoformat()},
        )
    return window_start, window_end


def rollup_day_range(
    days: int | None = None,
    start_day: dt.date | None = None,
    end_day: dt.date | None = None,
    *,
    today: dt.date | None = None,
    default_days: int = 30,
    max_days: int = 365,
) -> tuple[dt.date, dt.date]:
    """Inclusive day range for a rollup run.

    ``days`` counts calendar days ending today and is clamped to ``[1, max_days]``.
    """
    if start_day is not None and end_day is not None:
        if end_day < start_day:
            raise InvalidWindowError(
                "start_day must not be after end_day",
                details={"start_day": start_day.isoformat(), "end_day": end_day.isoformat()},
            )
        return start_day, end_day
    if start_day is not None or end_day is not None:
        raise InvalidWindowError("start_day and end_day must be given together")

    current = today or utcnow().date()
    count = min(max(days if days is not None else default_days, 1), max_days)
    return current - dt.timedelta(days=count - 1), current
