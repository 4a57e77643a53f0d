from __future__ import annotations

import datetime as dt

import pytest

from ticket_analytics.core.exceptions import InvalidWindowError
from ticket_analytics.services.analytics.windows import parse_window_bound, resolve_window, rollup_day_range

NOW = dt.datetime(2026, 3, 8, 12, 0, tzinfo=dt.timezone.utc)


@pytest.mark.parametrize(("key", "days"), [("7d", 7), ("30d", 30), ("90d", 90), ("bogus", 30), (None, 30)])
def test_range_presets_end_at_now(key, days) -> None:
    start, end = resolve_window(key, now=NOW)

    assert end == NOW
    assert start == NOW - dt.timedelta(days=days)


def test_explicit_dates_cover_whole_days() -> None:
    start, end = resolve_window("7d", "2026-02-01", "2026-02-03", now=NOW)

    assert start == dt.datetime(2026, 2, 1, tzinfo=dt.timezone.utc)
    assert end.date() == dt.date(2026, 2, 3)
    assert end.time() == dt.time.max


def test_naive_datetime_is_read_as_utc() -> None:
    parsed = parse_window_bound("2026-02-01T10:30:00")

    assert parsed == dt.datetime(2026, 2, 1, 10, 30, tzinfo=dt.timezone.utc)


def test_invalid_date_is_rejected() -> None:
    with pytest.raises(InvalidWindowError):
        parse_window_bound("2026-13-01")


def test_rollup_range_clamps_days() -> None:
    today = dt.date(2026, 3, 8)

    assert rollup_day_range(0, today=today) == (today, today)
    assert rollup_day_range(None, today=today, default_days=30) == (today - dt.timedelta(days=29), today)
    start, end = rollup_day_range(1000, today=today, max_days=365)
    assert (end - start).days + 1 == 365


def test_rollup_range_requires_both_bounds() -> None:
    with pytest.raises(InvalidWindowError):
        rollup_day_range(start_day=dt.date(2026, 3, 1))
