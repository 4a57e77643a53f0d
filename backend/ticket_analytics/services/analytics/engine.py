"""Read path: fetch one window of rows and build the full analytics payload."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy.orm import Session

from ticket_analytics.core.config import settings
from ticket_analytics.models.enums import ResolutionPolicy, TicketEventType, TicketPriority
from ticket_analytics.schemas.analytics import AnalyticsOut, AnalyticsQuery, AnalyticsRange, RecentActivityItem
from ticket_analytics.services.analytics import repository
from ticket_analytics.services.analytics.aggregator import AssignedEngineer, aggregate
from ticket_analytics.services.analytics.comparison import (
    compare_periods,
    period_totals,
    previous_window,
    window_day_count,
)
from ticket_analytics.services.analytics.sla_targets import target_for
from ticket_analytics.services.analytics.ticket_metrics import TicketMetrics, compute_ticket_metrics
from ticket_analytics.services.analytics.timeline import Timelines, build_timelines
from ticket_analytics.services.analytics.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


def compute_metrics_for_tickets(
    tickets: Sequence[Any],
    timelines: Timelines,
    *,
    now: dt.datetime,
    sla_targets: Mapping[TicketPriority, int],
    resolution_policy: ResolutionPolicy = ResolutionPolicy.earliest,
    warning_threshold: float = 0.8,
) -> dict[str, TicketMetrics]:
    return {
        str(ticket.id): compute_ticket_metrics(
            ticket,
            timelines.get(str(ticket.id), []),
            now=now,
            sla_target_minutes=target_for(getattr(ticket, "priority", None), sla_targets),
            resolution_policy=resolution_policy,
            warning_threshold=warning_threshold,
        )
        for ticket in tickets
    }


def _recent_activity(events: Sequence[Any], tickets_by_id: Mapping[str, Any]) -> list[RecentActivityItem]:
    items: list[RecentActivityItem] = []
    for event in events:
        ticket = tickets_by_id.get(str(event.ticket_id))
        creator = getattr(event, "creator", None)
        creator_email = str(getattr(creator, "email", "") or "")
        creator_name = str(getattr(creator, "name", "") or "").strip() or creator_email.split("@")[0] or "User"
        items.append(
            RecentActivityItem(
                id=str(event.id),
                ticket_id=str(event.ticket_id),
                type=str(event.type),
                created_at=as_utc(event.created_at),
                ticket_number=str(getattr(ticket, "ticket_number", None) or "Unknown"),
                ticket_title=str(getattr(ticket, "title", None) or ""),
                creator_name=creator_name,
                creator_email=creator_email,
                payload=event.payload if isinstance(event.payload, dict) else {},
            )
        )
    return items


def compute_ticket_analytics(
    db: Session,
    query: AnalyticsQuery,
    *,
    now: dt.datetime | None = None,
) -> AnalyticsOut:
    """Build the dashboard payload for one window.

    Fetch failures propagate as ``DatabaseQueryError`` and no partial payload
    is returned. An empty window yields zero-filled breakdowns and trends.
    """
    now_utc = as_utc(now) or utcnow()
    filters = query.filters
    policy = settings.ANALYTICS_RESOLUTION_POLICY

    tickets = repository.fetch_tickets(
        db,
        domain=query.domain,
        start=query.window_start,
        end=query.window_end,
        filters=filters,
    )
    tickets = repository.apply_engineer_filter(db, tickets, filters.engineer_id)
    ticket_ids = [str(ticket.id) for ticket in tickets]

    assignments: dict[str, AssignedEngineer] = repository.fetch_active_assignments(db, ticket_ids)
    timelines = build_timelines(repository.fetch_timeline_events(db, ticket_ids), ticket_ids)
    sla_targets = repository.load_sla_targets(db)
    recent_events = repository.fetch_recent_events(db, ticket_ids, limit=settings.RECENT_ACTIVITY_LIMIT)

    metrics = compute_metrics_for_tickets(
        tickets,
        timelines,
        now=now_utc,
        sla_targets=sla_targets,
        resolution_policy=policy,
        warning_threshold=settings.SLA_WARNING_THRESHOLD,
    )
    result = aggregate(
        tickets,
        metrics,
        assignments,
        window_start=query.window_start,
        window_end=query.window_end,
        now=now_utc,
        sla_targets=sla_targets,
        leaderboard_size=settings.LEADERBOARD_SIZE,
        workload_size=settings.WORKLOAD_SIZE,
    )

    day_count = window_day_count(query.window_start, query.window_end)
    previous_start, previous_end = previous_window(query.window_start, day_count)
    previous_tickets = repository.fetch_tickets(
        db,
        domain=query.domain,
        start=previous_start,
        end=previous_end,
        filters=filters,
        end_inclusive=False,
    )
    previous_tickets = repository.apply_engineer_filter(db, previous_tickets, filters.engineer_id)
    previous_ids = [str(ticket.id) for ticket in previous_tickets]
    previous_timelines = build_timelines(
        repository.fetch_timeline_events(db, previous_ids, (TicketEventType.status_changed.value,)),
        previous_ids,
    )
    # The previous period is judged as of its own end, not as of today.
    previous_metrics = compute_metrics_for_tickets(
        previous_tickets,
        previous_timelines,
        now=previous_end,
        sla_targets=sla_targets,
        resolution_policy=policy,
    )
    comparison = compare_periods(
        period_totals(metrics.values()),
        period_totals(previous_metrics.values()),
        previous_range=(previous_start, previous_end),
    )

    tickets_by_id = {str(ticket.id): ticket for ticket in tickets}
    logger.info(
        "Analytics computed: domain=%s window=%s..%s tickets=%d previous=%d",
        query.domain,
        query.window_start.isoformat(),
        query.window_end.isoformat(),
        len(tickets),
        len(previous_tickets),
    )
    return AnalyticsOut(
        range=AnalyticsRange(start=query.window_start, end=query.window_end, days=day_count),
        summary=result.summary,
        metrics=result.metrics,
        breakdowns=result.breakdowns,
        trends=result.trends,
        backlog_aging=result.backlog_aging,
        leaderboard=result.leaderboard,
        workload=result.workload,
        comparison=comparison,
        sla=result.sla_by_priority,
        sla_config={priority.value: minutes for priority, minutes in sla_targets.items()},
        tickets=result.tickets,
        recent_activity=_recent_activity(recent_events, tickets_by_id),
    )
