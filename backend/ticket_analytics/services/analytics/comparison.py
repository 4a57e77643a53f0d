"""Current-vs-previous period totals."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable
from dataclasses import dataclass

from ticket_analytics.schemas.analytics import AnalyticsRange, ComparisonPair, PeriodComparison
from ticket_analytics.services.analytics.ticket_metrics import TicketMetrics


@dataclass(frozen=True)
class PeriodTotals:
    total: int = 0
    resolved: int = 0
    breached: int = 0


def window_day_count(window_start: dt.datetime, window_end: dt.datetime) -> int:
    """Number of calendar days in the inclusive window."""
    return (window_end.date() - window_start.date()).days + 1


def previous_window(window_start: dt.datetime, day_count: int) -> tuple[dt.datetime, dt.datetime]:
    """The equally long window ending where the current one starts (end exclusive)."""
    duration_days = max(1, day_count)
    return window_start - dt.timedelta(days=duration_days), window_start


def period_totals(metrics: Iterable[TicketMetrics]) -> PeriodTotals:
    total = resolved = breached = 0
    for item in metrics:
        total += 1
        if item.is_resolved:
            resolved += 1
        if item.is_breached:
            breached += 1
    return PeriodTotals(total=total, resolved=resolved, breached=breached)


def compare_periods(
    current: PeriodTotals,
    previous: PeriodTotals,
    *,
    previous_range: tuple[dt.datetime, dt.datetime] | None = None,
) -> PeriodComparison:
    range_out = None
    if previous_range is not None:
        start, end = previous_range
        range_out = AnalyticsRange(start=start, end=end, days=(end - start).days)
    return PeriodComparison(
        total=ComparisonPair(current=current.total, previous=previous.total),
        resolved=ComparisonPair(current=current.resolved, previous=previous.resolved),
        breached=ComparisonPair(current=current.breached, previous=previous.breached),
        previous_range=range_out,
    )
