from __future__ import annotations

import datetime as dt
from types import SimpleNamespace

from ticket_analytics.models.enums import ResolutionPolicy, TicketPriority, TicketStatus
from ticket_analytics.schemas.events import timeline_event_from_row
from ticket_analytics.services.analytics.ticket_metrics import compute_ticket_metrics, waiting_intervals
from ticket_analytics.services.analytics.timeline import build_timelines

T0 = dt.datetime(2026, 3, 2, 9, 0, tzinfo=dt.timezone.utc)


def _ticket(
    *,
    ticket_id: str = "T-1",
    priority: TicketPriority = TicketPriority.medium,
    status: TicketStatus = TicketStatus.open,
    created_at: dt.datetime | None = T0,
    resolved_at: dt.datetime | None = None,
    closed_at: dt.datetime | None = None,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=ticket_id,
        priority=priority,
        status=status,
        created_at=created_at,
        resolved_at=resolved_at,
        closed_at=closed_at,
    )


def _status(minutes: int, new: str, old: str | None = None, ticket_id: str = "T-1"):
    return timeline_event_from_row(
        SimpleNamespace(
            ticket_id=ticket_id,
            type="STATUS_CHANGED",
            created_at=T0 + dt.timedelta(minutes=minutes),
            payload={"oldStatus": old, "newStatus": new},
        )
    )


def _assigned(minutes: int, action: str = "assigned", ticket_id: str = "T-1"):
    return timeline_event_from_row(
        SimpleNamespace(
            ticket_id=ticket_id,
            type="ASSIGNED",
            created_at=T0 + dt.timedelta(minutes=minutes),
            payload={"action": action, "engineerId": "eng-1"},
        )
    )


def _timeline(*events):
    return build_timelines(events, ["T-1"])["T-1"]


def test_waiting_time_is_excluded_from_effective_resolution() -> None:
    events = _timeline(
        _assigned(10),
        _status(60, "WAITING_ON_REQUESTER", "OPEN"),
        _status(180, "IN_PROGRESS", "WAITING_ON_REQUESTER"),
        _status(300, "RESOLVED", "IN_PROGRESS"),
    )

    metrics = compute_ticket_metrics(
        _ticket(),
        events,
        now=T0 + dt.timedelta(days=1),
        sla_target_minutes=1440,
    )

    assert metrics.ack_minutes == 10
    assert metrics.waiting_minutes == 120
    assert metrics.total_minutes == 300
    assert metrics.effective_resolution_minutes == 180
    assert metrics.is_breached is False
    assert metrics.resolved_at == T0 + dt.timedelta(minutes=300)


def test_unacknowledged_urgent_ticket_breaches_against_now() -> None:
    now = T0 + dt.timedelta(minutes=300)
    metrics = compute_ticket_metrics(
        _ticket(priority=TicketPriority.urgent),
        [],
        now=now,
        sla_target_minutes=240,
    )

    assert metrics.ack_at is None
    assert metrics.ack_minutes is None
    assert metrics.effective_resolution_minutes == 300
    assert metrics.is_breached is True
    assert metrics.is_at_risk is False
    assert metrics.is_resolved is False


def test_reopened_ticket_uses_earliest_resolution_by_default() -> None:
    events = _timeline(
        _status(120, "RESOLVED", "IN_PROGRESS"),
        _status(180, "OPEN", "RESOLVED"),
        _status(300, "RESOLVED", "OPEN"),
    )

    metrics = compute_ticket_metrics(_ticket(), events, now=T0 + dt.timedelta(days=1), sla_target_minutes=1440)

    assert metrics.is_reopened is True
    assert metrics.is_first_contact_resolution is False
    assert metrics.resolved_at == T0 + dt.timedelta(minutes=120)
    assert metrics.effective_resolution_minutes == 120


def test_latest_policy_uses_final_resolution_cycle() -> None:
    events = _timeline(
        _status(120, "RESOLVED", "IN_PROGRESS"),
        _status(180, "OPEN", "RESOLVED"),
        _status(300, "CLOSED", "OPEN"),
    )

    metrics = compute_ticket_metrics(
        _ticket(),
        events,
        now=T0 + dt.timedelta(days=1),
        sla_target_minutes=1440,
        resolution_policy=ResolutionPolicy.latest,
    )

    assert metrics.resolved_at == T0 + dt.timedelta(minutes=300)
    assert metrics.effective_resolution_minutes == 300


def test_latest_policy_clears_resolution_after_reopen() -> None:
    events = _timeline(
        _status(120, "RESOLVED", "IN_PROGRESS"),
        _status(180, "OPEN", "RESOLVED"),
    )
    now = T0 + dt.timedelta(minutes=600)

    metrics = compute_ticket_metrics(
        _ticket(),
        events,
        now=now,
        sla_target_minutes=1440,
        resolution_policy=ResolutionPolicy.latest,
    )

    assert metrics.resolved_at is None
    assert metrics.total_minutes == 600


def test_consecutive_waiting_transitions_are_not_double_counted() -> None:
    events = _timeline(
        _status(60, "WAITING_ON_REQUESTER", "OPEN"),
        _status(120, "WAITING_ON_REQUESTER", "WAITING_ON_REQUESTER"),
        _status(180, "IN_PROGRESS", "WAITING_ON_REQUESTER"),
    )

    intervals = waiting_intervals(events, clock_start=T0, clock_end=T0 + dt.timedelta(minutes=240))

    assert len(intervals) == 1
    assert sum(interval.minutes for interval in intervals) == 120


def test_open_waiting_span_runs_until_now() -> None:
    events = _timeline(_status(60, "WAITING_ON_REQUESTER", "OPEN"))
    now = T0 + dt.timedelta(minutes=200)

    metrics = compute_ticket_metrics(_ticket(), events, now=now, sla_target_minutes=240)

    assert metrics.waiting_minutes == 140
    assert metrics.effective_resolution_minutes == 60


def test_waiting_before_creation_is_clipped() -> None:
    events = _timeline(
        _status(-120, "WAITING_ON_REQUESTER", "OPEN"),
        _status(60, "IN_PROGRESS", "WAITING_ON_REQUESTER"),
    )

    metrics = compute_ticket_metrics(_ticket(), events, now=T0 + dt.timedelta(minutes=90), sla_target_minutes=240)

    assert metrics.waiting_minutes == 60
    assert metrics.effective_resolution_minutes == 30
    assert metrics.effective_resolution_minutes >= 0


def test_resolution_before_creation_clamps_to_zero() -> None:
    ticket = _ticket(resolved_at=T0 - dt.timedelta(hours=2))

    metrics = compute_ticket_metrics(ticket, [], now=T0, sla_target_minutes=240)

    assert metrics.total_minutes == 0
    assert metrics.effective_resolution_minutes == 0
    assert metrics.is_breached is False


def test_ticket_timestamps_are_fallback_when_log_has_no_resolution() -> None:
    ticket = _ticket(closed_at=T0 + dt.timedelta(minutes=45))

    metrics = compute_ticket_metrics(ticket, [], now=T0 + dt.timedelta(days=2), sla_target_minutes=240)

    assert metrics.resolved_at == T0 + dt.timedelta(minutes=45)
    assert metrics.effective_resolution_minutes == 45
    assert metrics.is_first_contact_resolution is True


def test_unassignment_does_not_acknowledge() -> None:
    events = _timeline(_assigned(5, action="unassigned"), _status(30, "IN_PROGRESS", "OPEN"))

    metrics = compute_ticket_metrics(_ticket(), events, now=T0 + dt.timedelta(hours=1), sla_target_minutes=240)

    assert metrics.ack_minutes == 30


def test_missing_created_at_contributes_zero_minutes() -> None:
    metrics = compute_ticket_metrics(_ticket(created_at=None), [], now=T0, sla_target_minutes=240)

    assert metrics.total_minutes == 0
    assert metrics.is_breached is False


def test_at_risk_when_elapsed_reaches_warning_threshold() -> None:
    now = T0 + dt.timedelta(minutes=200)

    metrics = compute_ticket_metrics(_ticket(), [], now=now, sla_target_minutes=240)

    assert metrics.is_breached is False
    assert metrics.is_at_risk is True


def test_reassigned_ticket_is_not_first_contact_resolution() -> None:
    events = _timeline(
        _assigned(5),
        _assigned(40),
        _status(90, "RESOLVED", "IN_PROGRESS"),
    )

    metrics = compute_ticket_metrics(_ticket(), events, now=T0 + dt.timedelta(days=1), sla_target_minutes=1440)

    assert metrics.is_resolved is True
    assert metrics.is_reopened is False
    assert metrics.is_first_contact_resolution is False


def test_ticket_that_waited_is_not_first_contact_resolution() -> None:
    events = _timeline(
        _assigned(5),
        _status(30, "WAITING_ON_REQUESTER", "IN_PROGRESS"),
        _status(60, "IN_PROGRESS", "WAITING_ON_REQUESTER"),
        _status(90, "RESOLVED", "IN_PROGRESS"),
    )

    metrics = compute_ticket_metrics(_ticket(), events, now=T0 + dt.timedelta(days=1), sla_target_minutes=1440)

    assert metrics.is_reopened is False
    assert metrics.is_first_contact_resolution is False


def test_open_wait_stops_at_column_resolution_time() -> None:
    events = _timeline(_status(60, "WAITING_ON_REQUESTER", "OPEN"))
    ticket = _ticket(resolved_at=T0 + dt.timedelta(minutes=120))

    metrics = compute_ticket_metrics(ticket, events, now=T0 + dt.timedelta(minutes=600), sla_target_minutes=240)

    assert metrics.waiting_minutes == 60
    assert metrics.total_minutes == 120
    assert metrics.effective_resolution_minutes == 60
