"""Single-pass folding of per-ticket metrics into dashboard views."""

from __future__ import annotations

import datetime as dt
from collections import Counter, defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ticket_analytics.models.enums import PRIORITY_ORDER, STATUS_ORDER, TicketPriority, TicketStatus
from ticket_analytics.schemas.analytics import (
    AnalyticsBreakdowns,
    AnalyticsMetrics,
    AnalyticsSummary,
    AnalyticsTrends,
    BacklogAgingBucket,
    DailyValuePoint,
    DailyVolumePoint,
    LeaderboardEntry,
    SlaPriorityRow,
    TicketExportRow,
    WorkloadEntry,
)
from ticket_analytics.services.analytics.sla_targets import parse_priority
from ticket_analytics.services.analytics.ticket_metrics import TicketMetrics
from ticket_analytics.services.analytics.timeutils import (
    as_utc,
    day_key,
    days_between,
    iter_days,
    mean_minutes,
    round_half_up,
)

DEFAULT_CATEGORY = "uncategorized"
DEFAULT_SUBCATEGORY = "general"
LEADERBOARD_SIZE = 6
WORKLOAD_SIZE = 8

# (label, lowest age in days, highest age in days or None for open-ended)
BACKLOG_BANDS: tuple[tuple[str, int, int | None], ...] = (
    ("0-2", 0, 2),
    ("3-7", 3, 7),
    ("8-14", 8, 14),
    ("15+", 15, None),
)

_OPEN_STATUSES = {TicketStatus.open, TicketStatus.in_progress, TicketStatus.waiting_on_requester}
_BACKLOG_STATUSES = {TicketStatus.open, TicketStatus.in_progress}


@dataclass(frozen=True)
class AssignedEngineer:
    id: str
    name: str
    email: str
    assigned_at: dt.datetime | None = None


@dataclass
class _EngineerTally:
    engineer: AssignedEngineer
    assigned: int = 0
    resolved: int = 0
    open: int = 0
    breached: int = 0
    resolution_minutes: int = 0


@dataclass(frozen=True)
class AggregateResult:
    summary: AnalyticsSummary
    metrics: AnalyticsMetrics
    breakdowns: AnalyticsBreakdowns
    trends: AnalyticsTrends
    backlog_aging: list[BacklogAgingBucket]
    leaderboard: list[LeaderboardEntry]
    workload: list[WorkloadEntry]
    sla_by_priority: list[SlaPriorityRow]
    tickets: list[TicketExportRow] = field(default_factory=list)


def _status_of(ticket: Any) -> TicketStatus | None:
    raw = getattr(ticket, "status", None)
    raw = raw.value if hasattr(raw, "value") else raw
    try:
        return TicketStatus(str(raw or "").strip().upper())
    except ValueError:
        return None


def _folded(value: Any, default: str) -> str:
    text = str(value or "").strip()
    return text.lower() if text else default


def _percent(part: int, whole: int) -> float:
    return round((part / whole) * 100, 2) if whole else 0.0


def backlog_band(age_days: int) -> str:
    for label, lowest, highest in BACKLOG_BANDS:
        if age_days >= lowest and (highest is None or age_days <= highest):
            return label
    return BACKLOG_BANDS[0][0]


def _person(user: Any, default: str) -> tuple[str, str]:
    if user is None:
        return default, ""
    email = str(getattr(user, "email", "") or "")
    name = str(getattr(user, "name", "") or "").strip() or email.split("@")[0] or default
    return name, email


def _export_row(
    ticket: Any,
    metrics: TicketMetrics,
    engineer: AssignedEngineer | None,
    status: TicketStatus | None,
    priority: TicketPriority | None,
) -> TicketExportRow:
    requester_name, requester_email = _person(getattr(ticket, "requester", None), "Unknown")
    return TicketExportRow(
        id=str(ticket.id),
        ticket_number=getattr(ticket, "ticket_number", None),
        title=getattr(ticket, "title", None),
        status=status.value if status else str(getattr(ticket, "status", "")),
        priority=priority.value if priority else str(getattr(ticket, "priority", "")),
        category=str(getattr(ticket, "category", None) or DEFAULT_CATEGORY),
        subcategory=str(getattr(ticket, "subcategory", None) or DEFAULT_SUBCATEGORY),
        created_at=as_utc(getattr(ticket, "created_at", None)),
        resolved_at=as_utc(getattr(ticket, "resolved_at", None)),
        closed_at=as_utc(getattr(ticket, "closed_at", None)),
        project_code=str(getattr(ticket, "project_code", None) or ""),
        project_name=str(getattr(ticket, "project_name", None) or ""),
        requester_name=requester_name,
        requester_email=requester_email,
        assignee_name=engineer.name if engineer else "Unassigned",
        assignee_email=engineer.email if engineer else "",
        sla_target_minutes=metrics.sla_target_minutes,
        sla_elapsed_minutes=metrics.effective_resolution_minutes,
        sla_breached=metrics.is_breached,
    )


def aggregate(
    tickets: Sequence[Any],
    metrics_by_ticket: Mapping[str, TicketMetrics],
    assignments: Mapping[str, AssignedEngineer],
    *,
    window_start: dt.datetime,
    window_end: dt.datetime,
    now: dt.datetime,
    sla_targets: Mapping[TicketPriority, int],
    leaderboard_size: int = LEADERBOARD_SIZE,
    workload_size: int = WORKLOAD_SIZE,
    include_ticket_rows: bool = True,
) -> AggregateResult:
    """Fold a window's tickets and their metrics into every dashboard view.

    Status and priority breakdowns are zero-filled and sum to ``len(tickets)``.
    Trend series hold one point per UTC day in ``[window_start, window_end]``.
    Tickets without a metrics record are skipped.
    """
    status_counts: Counter[TicketStatus] = Counter()
    priority_counts: Counter[TicketPriority] = Counter()
    priority_breaches: Counter[TicketPriority] = Counter()
    category_counts: Counter[str] = Counter()
    subcategory_counts: Counter[str] = Counter()
    opened_by_day: Counter[dt.date] = Counter()
    resolved_by_day: Counter[dt.date] = Counter()
    breached_by_day: Counter[dt.date] = Counter()
    ack_by_day: dict[dt.date, list[int]] = defaultdict(list)
    resolution_by_day: dict[dt.date, list[int]] = defaultdict(list)
    aging_counts: Counter[str] = Counter()
    engineers: dict[str, _EngineerTally] = {}
    export_rows: list[TicketExportRow] = []

    summary = AnalyticsSummary()
    ack_values: list[int] = []
    resolution_values: list[int] = []
    reopened = 0
    ever_resolved = 0
    first_contact = 0

    for ticket in tickets:
        ticket_id = str(ticket.id)
        metrics = metrics_by_ticket.get(ticket_id)
        if metrics is None:
            continue
        status = _status_of(ticket)
        priority = parse_priority(getattr(ticket, "priority", None))
        engineer = assignments.get(ticket_id)

        summary.total += 1
        if status is not None:
            status_counts[status] += 1
            if status in _OPEN_STATUSES:
                summary.open += 1
            if status in _BACKLOG_STATUSES:
                summary.backlog += 1
        if priority is not None:
            priority_counts[priority] += 1
        category_counts[_folded(getattr(ticket, "category", None), DEFAULT_CATEGORY)] += 1
        subcategory_counts[_folded(getattr(ticket, "subcategory", None), DEFAULT_SUBCATEGORY)] += 1
        if engineer is None:
            summary.unassigned += 1

        created_day = day_key(metrics.created_at)
        if created_day is not None:
            opened_by_day[created_day] += 1

        if metrics.ack_minutes is not None:
            ack_values.append(metrics.ack_minutes)
            if created_day is not None:
                ack_by_day[created_day].append(metrics.ack_minutes)

        if metrics.is_breached:
            summary.sla_breached += 1
            if priority is not None:
                priority_breaches[priority] += 1
            if created_day is not None:
                breached_by_day[created_day] += 1
        else:
            summary.sla_on_track += 1
        if metrics.is_at_risk:
            summary.sla_at_risk += 1

        if metrics.is_resolved:
            resolution_values.append(metrics.effective_resolution_minutes)
            resolved_day = day_key(metrics.resolved_at)
            if resolved_day is not None:
                resolved_by_day[resolved_day] += 1
                resolution_by_day[resolved_day].append(metrics.effective_resolution_minutes)
            if metrics.is_first_contact_resolution:
                first_contact += 1
        else:
            aging_counts[backlog_band(days_between(metrics.created_at, now))] += 1

        if metrics.is_resolved or metrics.is_reopened:
            ever_resolved += 1
        if metrics.is_reopened:
            reopened += 1

        if engineer is not None and engineer.id:
            tally = engineers.setdefault(engineer.id, _EngineerTally(engineer=engineer))
            tally.assigned += 1
            if metrics.is_resolved:
                tally.resolved += 1
                tally.resolution_minutes += metrics.effective_resolution_minutes
            else:
                tally.open += 1
            if metrics.is_breached:
                tally.breached += 1

        if include_ticket_rows:
            export_rows.append(_export_row(ticket, metrics, engineer, status, priority))

    days = list(iter_days(window_start.date(), window_end.date()))
    trends = AnalyticsTrends(
        volume=[
            DailyVolumePoint(day=day, opened=opened_by_day[day], resolved=resolved_by_day[day])
            for day in days
        ],
        sla_breaches=[DailyValuePoint(day=day, value=breached_by_day[day]) for day in days],
        mtta_minutes=[DailyValuePoint(day=day, value=mean_minutes(ack_by_day.get(day, []))) for day in days],
        mttr_minutes=[
            DailyValuePoint(day=day, value=mean_minutes(resolution_by_day.get(day, []))) for day in days
        ],
    )

    leaderboard = [
        LeaderboardEntry(
            id=tally.engineer.id,
            name=tally.engineer.name,
            email=tally.engineer.email,
            assigned=tally.assigned,
            resolved=tally.resolved,
            breached=tally.breached,
            avg_resolution_minutes=round_half_up(tally.resolution_minutes / tally.resolved) if tally.resolved else 0,
        )
        for tally in sorted(engineers.values(), key=lambda item: (-item.resolved, item.engineer.id))
    ][: max(0, leaderboard_size)]
    workload = [
        WorkloadEntry(
            id=tally.engineer.id,
            name=tally.engineer.name,
            email=tally.engineer.email,
            open=tally.open,
            resolved=tally.resolved,
        )
        for tally in sorted(engineers.values(), key=lambda item: (-item.open, item.engineer.id))
    ][: max(0, workload_size)]

    resolved_total = len(resolution_values)
    return AggregateResult(
        summary=summary,
        metrics=AnalyticsMetrics(
            avg_mtta_minutes=mean_minutes(ack_values),
            avg_mttr_minutes=mean_minutes(resolution_values),
            resolved=resolved_total,
            reopened=reopened,
            reopen_rate=_percent(reopened, ever_resolved),
            first_contact_resolutions=first_contact,
            first_contact_resolution_rate=_percent(first_contact, resolved_total),
        ),
        breakdowns=AnalyticsBreakdowns(
            by_status={status.value: status_counts[status] for status in STATUS_ORDER},
            by_priority={priority.value: priority_counts[priority] for priority in PRIORITY_ORDER},
            by_category=dict(category_counts),
            by_subcategory=dict(subcategory_counts),
        ),
        trends=trends,
        backlog_aging=[BacklogAgingBucket(band=label, count=aging_counts[label]) for label, _, _ in BACKLOG_BANDS],
        leaderboard=leaderboard,
        workload=workload,
        sla_by_priority=[
            SlaPriorityRow(
                priority=priority,
                total=priority_counts[priority],
                breached=priority_breaches[priority],
                target_minutes=sla_targets.get(priority, 0),
            )
            for priority in PRIORITY_ORDER
        ],
        tickets=export_rows,
    )
