from __future__ import annotations

import datetime as dt
from types import SimpleNamespace

import pytest

from ticket_analytics.core.exceptions import DatabaseQueryError
from ticket_analytics.models.enums import TicketPriority, TicketStatus
from ticket_analytics.schemas.analytics import AnalyticsFilters, AnalyticsQuery
from ticket_analytics.services.analytics import engine, repository
from ticket_analytics.services.analytics.comparison import previous_window, window_day_count
from ticket_analytics.services.analytics.sla_targets import default_sla_targets

WINDOW_START = dt.datetime(2026, 3, 1, 0, 0, tzinfo=dt.timezone.utc)
WINDOW_END = dt.datetime(2026, 3, 7, 23, 59, 59, tzinfo=dt.timezone.utc)
NOW = dt.datetime(2026, 3, 8, 0, 0, tzinfo=dt.timezone.utc)


def _tickets(prefix: str, *, start: dt.datetime, total: int, resolved: int) -> list[SimpleNamespace]:
    rows = []
    for index in range(total):
        created_at = start + dt.timedelta(hours=index)
        rows.append(
            SimpleNamespace(
                id=f"{prefix}-{index}",
                ticket_number=f"{prefix}-{index}",
                title="Printer offline",
                status=TicketStatus.resolved if index < resolved else TicketStatus.open,
                priority=TicketPriority.medium,
                category="hardware",
                subcategory="printer",
                project_code=None,
                project_name=None,
                requester=None,
                created_at=created_at,
                resolved_at=created_at + dt.timedelta(minutes=30) if index < resolved else None,
                closed_at=None,
            )
        )
    return rows


def _patch_repository(monkeypatch, current, previous, calls):
    def _fetch_tickets(db, *, domain, start, end, filters, end_inclusive=True):
        calls.append({"start": start, "end": end, "end_inclusive": end_inclusive, "filters": filters})
        return current if end_inclusive else previous

    monkeypatch.setattr(repository, "fetch_tickets", _fetch_tickets)
    monkeypatch.setattr(repository, "apply_engineer_filter", lambda db, tickets, engineer_ids: tickets)
    monkeypatch.setattr(repository, "fetch_active_assignments", lambda db, ticket_ids: {})
    monkeypatch.setattr(repository, "fetch_timeline_events", lambda db, ticket_ids, event_types=None: [])
    monkeypatch.setattr(repository, "fetch_recent_events", lambda db, ticket_ids, limit: [])
    monkeypatch.setattr(repository, "load_sla_targets", lambda db: default_sla_targets())


def _query(**filters) -> AnalyticsQuery:
    return AnalyticsQuery(
        domain="IT",
        window_start=WINDOW_START,
        window_end=WINDOW_END,
        filters=AnalyticsFilters(**filters),
    )


def test_previous_window_has_equal_length_and_ends_at_start() -> None:
    days = window_day_count(WINDOW_START, WINDOW_END)
    start, end = previous_window(WINDOW_START, days)

    assert days == 7
    assert end == WINDOW_START
    assert start == WINDOW_START - dt.timedelta(days=7)
    assert previous_window(WINDOW_START, 0)[0] == WINDOW_START - dt.timedelta(days=1)


def test_comparison_counts_current_and_previous_periods(monkeypatch) -> None:
    calls: list[dict] = []
    current = _tickets("CUR", start=WINDOW_START, total=10, resolved=6)
    previous = _tickets("PRE", start=WINDOW_START - dt.timedelta(days=7), total=8, resolved=5)
    _patch_repository(monkeypatch, current, previous, calls)

    payload = engine.compute_ticket_analytics(object(), _query(priority="MEDIUM"), now=NOW)

    assert payload.comparison.total.current == 10
    assert payload.comparison.total.previous == 8
    assert payload.comparison.resolved.current == 6
    assert payload.comparison.resolved.previous == 5
    assert payload.comparison.previous_range.end == WINDOW_START
    assert calls[1]["end_inclusive"] is False
    assert calls[1]["filters"].priority == [TicketPriority.medium]


def test_payload_shape_for_window(monkeypatch) -> None:
    current = _tickets("CUR", start=WINDOW_START, total=3, resolved=1)
    _patch_repository(monkeypatch, current, [], [])

    payload = engine.compute_ticket_analytics(object(), _query(), now=NOW)

    assert payload.range.days == 7
    assert payload.summary.total == 3
    assert payload.metrics.resolved == 1
    assert payload.metrics.avg_mttr_minutes == 30
    assert len(payload.trends.volume) == 7
    assert payload.sla_config == {"LOW": 4320, "MEDIUM": 1440, "HIGH": 480, "URGENT": 240}
    assert len(payload.tickets) == 3


def test_recent_activity_enriches_ticket_fields(monkeypatch) -> None:
    current = _tickets("CUR", start=WINDOW_START, total=1, resolved=0)
    _patch_repository(monkeypatch, current, [], [])
    event = SimpleNamespace(
        id="evt-1",
        ticket_id="CUR-0",
        type="COMMENTED",
        created_at=WINDOW_START,
        payload={"body": "on it"},
        creator=SimpleNamespace(name=None, email="sam@example.com"),
    )
    monkeypatch.setattr(repository, "fetch_recent_events", lambda db, ticket_ids, limit: [event])

    payload = engine.compute_ticket_analytics(object(), _query(), now=NOW)

    item = payload.recent_activity[0]
    assert item.ticket_number == "CUR-0"
    assert item.ticket_title == "Printer offline"
    assert item.creator_name == "sam"


def test_fetch_failure_aborts_without_partial_payload(monkeypatch) -> None:
    _patch_repository(monkeypatch, [], [], [])

    def _boom(db, ticket_ids):
        raise DatabaseQueryError("fetch_active_assignments_failed", query="fetch_active_assignments")

    monkeypatch.setattr(repository, "fetch_active_assignments", _boom)

    with pytest.raises(DatabaseQueryError):
        engine.compute_ticket_analytics(object(), _query(), now=NOW)
