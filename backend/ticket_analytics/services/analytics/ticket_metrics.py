"""Per-ticket SLA metrics derived from one ticket row and its timeline."""

from __future__ import annotations

import datetime as dt
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ticket_analytics.models.enums import RESOLVED_STATUSES, ResolutionPolicy, TicketStatus
from ticket_analytics.schemas.events import AssignedEvent, StatusChangedEvent
from ticket_analytics.services.analytics.timeline import TimelineEntry, assignment_events, status_events
from ticket_analytics.services.analytics.timeutils import as_utc, minutes_between

_RESOLVED_VALUES = {status.value for status in RESOLVED_STATUSES}
_WAITING_VALUE = TicketStatus.waiting_on_requester.value
_ACK_STATUS_VALUE = TicketStatus.in_progress.value
_REOPEN_VALUE = TicketStatus.open.value
DEFAULT_WARNING_THRESHOLD = 0.8


@dataclass(frozen=True)
class WaitingInterval:
    start: dt.datetime
    end: dt.datetime

    @property
    def minutes(self) -> int:
        return minutes_between(self.start, self.end)


@dataclass(frozen=True)
class TicketMetrics:
    ticket_id: str
    created_at: dt.datetime | None
    ack_at: dt.datetime | None
    ack_minutes: int | None
    waiting_minutes: int
    resolved_at: dt.datetime | None
    total_minutes: int
    effective_resolution_minutes: int
    sla_target_minutes: int
    is_breached: bool
    is_at_risk: bool
    is_reopened: bool
    is_first_contact_resolution: bool

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None


def acknowledgement_at(events: Sequence[TimelineEntry]) -> dt.datetime | None:
    """Earliest move into IN_PROGRESS or assignment (unassignments excluded)."""
    candidates: list[dt.datetime] = []
    for event in events:
        if event.created_at is None:
            continue
        if isinstance(event, StatusChangedEvent) and event.payload.new_status == _ACK_STATUS_VALUE:
            candidates.append(event.created_at)
        elif isinstance(event, AssignedEvent) and not event.payload.is_unassignment:
            candidates.append(event.created_at)
    return min(candidates) if candidates else None


def _merge_intervals(intervals: list[WaitingInterval]) -> list[WaitingInterval]:
    merged: list[WaitingInterval] = []
    for interval in sorted(intervals, key=lambda item: item.start):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = WaitingInterval(start=last.start, end=max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def waiting_intervals(
    events: Sequence[TimelineEntry],
    *,
    clock_start: dt.datetime | None,
    clock_end: dt.datetime,
) -> list[WaitingInterval]:
    """Non-overlapping WAITING_ON_REQUESTER spans, clipped to the SLA clock.

    A span opens at the first transition into WAITING_ON_REQUESTER and closes
    at the next status transition into any other status, or at ``clock_end``.
    Repeated WAITING_ON_REQUESTER transitions inside an open span extend
    nothing, so no minute is counted twice.
    """
    raw: list[WaitingInterval] = []
    waiting_since: dt.datetime | None = None
    for event in status_events(events):
        if event.created_at is None:
            continue
        if event.payload.new_status == _WAITING_VALUE:
            if waiting_since is None:
                waiting_since = event.created_at
            continue
        if waiting_since is not None:
            raw.append(WaitingInterval(start=waiting_since, end=event.created_at))
            waiting_since = None
    if waiting_since is not None:
        raw.append(WaitingInterval(start=waiting_since, end=clock_end))

    lower = as_utc(clock_start)
    clipped: list[WaitingInterval] = []
    for interval in raw:
        start = max(interval.start, lower) if lower is not None else interval.start
        end = min(interval.end, clock_end)
        if end > start:
            clipped.append(WaitingInterval(start=start, end=end))
    return _merge_intervals(clipped)


def resolution_instant(
    ticket: Any,
    events: Sequence[TimelineEntry],
    *,
    policy: ResolutionPolicy = ResolutionPolicy.earliest,
) -> dt.datetime | None:
    """Canonical "resolved at" for metrics.

    ``earliest`` keeps the first RESOLVED/CLOSED transition even if the ticket
    was later reopened and resolved again. ``latest`` keeps the start of the
    final resolved cycle and clears it when the ticket leaves RESOLVED/CLOSED.
    The ticket's own ``resolved_at``/``closed_at`` are used only when the log
    holds no resolving transition.
    """
    transitions = [event for event in status_events(events) if event.created_at is not None]
    resolving = [event for event in transitions if event.payload.new_status in _RESOLVED_VALUES]

    if resolving:
        if policy == ResolutionPolicy.earliest:
            return min(event.created_at for event in resolving)
        current: dt.datetime | None = None
        for event in transitions:
            if event.payload.new_status in _RESOLVED_VALUES:
                if current is None:
                    current = event.created_at
            elif event.payload.new_status is not None:
                current = None
        return current

    return as_utc(getattr(ticket, "resolved_at", None)) or as_utc(getattr(ticket, "closed_at", None))


def is_reopened(events: Sequence[TimelineEntry]) -> bool:
    return any(
        event.payload.new_status == _REOPEN_VALUE and event.payload.old_status in _RESOLVED_VALUES
        for event in status_events(events)
    )


def compute_ticket_metrics(
    ticket: Any,
    events: Sequence[TimelineEntry],
    *,
    now: dt.datetime,
    sla_target_minutes: int,
    resolution_policy: ResolutionPolicy = ResolutionPolicy.earliest,
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD,
) -> TicketMetrics:
    """Compute acknowledgement, waiting, resolution and SLA flags for one ticket.

    ``events`` must already be sorted (see ``build_timelines``). Missing or
    malformed timestamps contribute zero minutes instead of failing.
    """
    now_utc = as_utc(now)
    created_at = as_utc(getattr(ticket, "created_at", None))

    ack_at = acknowledgement_at(events)
    ack_minutes = minutes_between(created_at, ack_at) if ack_at is not None else None

    resolved_at = resolution_instant(ticket, events, policy=resolution_policy)
    clock_end = resolved_at or now_utc
    intervals = waiting_intervals(events, clock_start=created_at, clock_end=clock_end)
    waiting_minutes = sum(interval.minutes for interval in intervals)

    total_minutes = minutes_between(created_at, clock_end)
    effective_minutes = max(0, total_minutes - waiting_minutes)
    is_breached = effective_minutes > sla_target_minutes
    is_at_risk = (
        resolved_at is None
        and not is_breached
        and effective_minutes >= sla_target_minutes * warning_threshold
    )

    reopened = is_reopened(events)
    ever_waited = any(event.payload.new_status == _WAITING_VALUE for event in status_events(events))
    assignment_count = sum(1 for event in assignment_events(events) if not event.payload.is_unassignment)
    first_contact = resolved_at is not None and not reopened and not ever_waited and assignment_count <= 1

    return TicketMetrics(
        ticket_id=str(getattr(ticket, "id", "")),
        created_at=created_at,
        ack_at=ack_at,
        ack_minutes=ack_minutes,
        waiting_minutes=waiting_minutes,
        resolved_at=resolved_at,
        total_minutes=total_minutes,
        effective_resolution_minutes=effective_minutes,
        sla_target_minutes=sla_target_minutes,
        is_breached=is_breached,
        is_at_risk=is_at_risk,
        is_reopened=reopened,
        is_first_contact_resolution=first_contact,
    )
