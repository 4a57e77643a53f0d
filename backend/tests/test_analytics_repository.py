from __future__ import annotations

import datetime as dt
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from ticket_analytics.core.exceptions import DatabaseQueryError, InvalidFilterError
from ticket_analytics.models.enums import TicketPriority
from ticket_analytics.services.analytics import repository


class _ScalarResult:
    def __init__(self, values):
        self._values = values

    def all(self):
        return list(self._values)


class _ExecResult:
    def __init__(self, values):
        self._values = values

    def scalars(self):
        return _ScalarResult(self._values)

    def all(self):
        return list(self._values)


class _FakeDb:
    def __init__(self, results=None, *, fail: bool = False) -> None:
        self._results = list(results or [])
        self.fail = fail
        self.rollbacks = 0

    def execute(self, _stmt):
        if self.fail:
            raise OperationalError("SELECT 1", {}, Exception("connection lost"))
        return _ExecResult(self._results.pop(0) if self._results else [])

    def rollback(self) -> None:
        self.rollbacks += 1


def test_fetch_failure_is_wrapped() -> None:
    db = _FakeDb(fail=True)

    with pytest.raises(DatabaseQueryError) as excinfo:
        repository.fetch_sla_config_rows(db)

    assert excinfo.value.status_code == 500
    assert excinfo.value.details == {"query": "fetch_sla_config"}


def test_sla_targets_fall_back_to_defaults_when_lookup_fails() -> None:
    db = _FakeDb(fail=True)

    targets = repository.load_sla_targets(db)

    assert targets[TicketPriority.urgent] == 240
    assert db.rollbacks == 1


def test_sla_targets_overlay_stored_rows() -> None:
    db = _FakeDb([[SimpleNamespace(priority="HIGH", target_minutes=300)]])

    targets = repository.load_sla_targets(db)

    assert targets[TicketPriority.high] == 300
    assert targets[TicketPriority.low] == 4320


def test_latest_active_assignment_wins() -> None:
    engineer_a = SimpleNamespace(id="a", name="Ada", email="ada@example.com")
    engineer_b = SimpleNamespace(id="b", name=None, email="bob@example.com")
    earlier = dt.datetime(2026, 3, 1, 8, 0, tzinfo=dt.timezone.utc)
    rows = [
        (SimpleNamespace(ticket_id="T-1", assigned_at=earlier), engineer_a),
        (SimpleNamespace(ticket_id="T-1", assigned_at=earlier + dt.timedelta(hours=1)), engineer_b),
    ]

    assignments = repository.fetch_active_assignments(_FakeDb([rows]), ["T-1"])

    assert assignments["T-1"].id == "b"
    assert assignments["T-1"].name == "bob"


def test_engineer_filter_rejects_malformed_ids() -> None:
    tickets = [SimpleNamespace(id="T-1")]

    with pytest.raises(InvalidFilterError):
        repository.apply_engineer_filter(_FakeDb(), tickets, ["not-a-uuid"])


def test_engineer_filter_keeps_assigned_tickets() -> None:
    tickets = [SimpleNamespace(id="T-1"), SimpleNamespace(id="T-2")]
    db = _FakeDb([["T-2"]])

    kept = repository.apply_engineer_filter(db, tickets, ["6f1c2d9e-7a43-4b8e-9d0e-2c4a1b3f5e67"])

    assert [ticket.id for ticket in kept] == ["T-2"]


def test_timeline_fetch_validates_rows() -> None:
    created = dt.datetime(2026, 3, 1, 8, 0, tzinfo=dt.timezone.utc)
    rows = [
        SimpleNamespace(ticket_id="T-1", type="STATUS_CHANGED", created_at=created, payload={"newStatus": "resolved"}),
        SimpleNamespace(ticket_id="T-1", type="COMMENTED", created_at=created, payload={}),
    ]

    events = repository.fetch_timeline_events(_FakeDb([rows]), ["T-1"])

    assert len(events) == 1
    assert events[0].payload.new_status == "RESOLVED"


def test_empty_ticket_sets_skip_queries() -> None:
    db = _FakeDb(fail=True)

    assert repository.fetch_active_assignments(db, []) == {}
    assert repository.fetch_timeline_events(db, []) == []
    assert repository.fetch_recent_events(db, [], limit=8) == []


def test_engineer_filter_validates_ids_on_empty_window() -> None:
    with pytest.raises(InvalidFilterError):
        repository.apply_engineer_filter(_FakeDb(fail=True), [], ["not-a-uuid"])


def test_engineer_filter_on_empty_window_skips_query() -> None:
    kept = repository.apply_engineer_filter(_FakeDb(fail=True), [], ["6f1c2d9e-7a43-4b8e-9d0e-2c4a1b3f5e67"])

    assert kept == []
