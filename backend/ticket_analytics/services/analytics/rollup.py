"""Batch rollup of daily ticket counts into ``ticket_metrics_daily``."""

from __future__ import annotations

import datetime as dt
import logging
from collections import Counter, defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass
from typing import Any

from sqlalchemy.orm import Session

from ticket_analytics.core.config import settings
from ticket_analytics.models.enums import ResolutionPolicy, TicketPriority
from ticket_analytics.schemas.analytics import AnalyticsFilters
from ticket_analytics.services.analytics import repository
from ticket_analytics.services.analytics.sla_targets import target_for
from ticket_analytics.services.analytics.ticket_metrics import compute_ticket_metrics
from ticket_analytics.services.analytics.timeline import Timelines, build_timelines
from ticket_analytics.services.analytics.timeutils import (
    as_utc,
    day_key,
    end_of_day,
    iter_days,
    mean_minutes,
    start_of_day,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyRollup:
    day: dt.date
    opened: int
    resolved: int
    sla_breached: int
    mtta_minutes: int
    mttr_minutes: int


def build_daily_rollups(
    tickets: Sequence[Any],
    timelines: Timelines,
    *,
    day_start: dt.date,
    day_end: dt.date,
    now: dt.datetime,
    sla_targets: Mapping[TicketPriority, int],
    resolution_policy: ResolutionPolicy = ResolutionPolicy.earliest,
) -> list[DailyRollup]:
    """One row per calendar day in ``[day_start, day_end]``, zero days included.

    Opened, breached and MTTA are keyed by creation day; resolved and MTTR by
    the canonical resolution day. Days outside the range are dropped.
    """
    opened: Counter[dt.date] = Counter()
    resolved: Counter[dt.date] = Counter()
    breached: Counter[dt.date] = Counter()
    ack_minutes: dict[dt.date, list[int]] = defaultdict(list)
    resolution_minutes: dict[dt.date, list[int]] = defaultdict(list)

    for ticket in tickets:
        metrics = compute_ticket_metrics(
            ticket,
            timelines.get(str(ticket.id), []),
            now=now,
            sla_target_minutes=target_for(getattr(ticket, "priority", None), sla_targets),
            resolution_policy=resolution_policy,
        )
        created_day = day_key(metrics.created_at)
        if created_day is not None:
            opened[created_day] += 1
            if metrics.is_breached:
                breached[created_day] += 1
            if metrics.ack_minutes is not None:
                ack_minutes[created_day].append(metrics.ack_minutes)
        resolved_day = day_key(metrics.resolved_at)
        if resolved_day is not None:
            resolved[resolved_day] += 1
            resolution_minutes[resolved_day].append(metrics.effective_resolution_minutes)

    return [
        DailyRollup(
            day=day,
            opened=opened[day],
            resolved=resolved[day],
            sla_breached=breached[day],
            mtta_minutes=mean_minutes(ack_minutes.get(day, [])),
            mttr_minutes=mean_minutes(resolution_minutes.get(day, [])),
        )
        for day in iter_days(day_start, day_end)
    ]


def run_metrics_rollup(
    db: Session,
    day_start: dt.date,
    day_end: dt.date,
    *,
    now: dt.datetime | None = None,
    domain: str | None = None,
) -> int:
    """Recompute and upsert daily rollups for the range; returns rows written."""
    if day_end < day_start:
        day_start, day_end = day_end, day_start
    now_utc = as_utc(now) or utcnow()
    scope = domain or settings.ANALYTICS_DOMAIN

    sla_targets = repository.load_sla_targets(db)
    tickets = repository.fetch_tickets(
        db,
        domain=scope,
        start=start_of_day(day_start),
        end=end_of_day(day_end),
        filters=AnalyticsFilters(),
    )
    ticket_ids = [str(ticket.id) for ticket in tickets]
    timelines = build_timelines(repository.fetch_timeline_events(db, ticket_ids), ticket_ids)

    rows = build_daily_rollups(
        tickets,
        timelines,
        day_start=day_start,
        day_end=day_end,
        now=now_utc,
        sla_targets=sla_targets,
        resolution_policy=settings.ANALYTICS_RESOLUTION_POLICY,
    )
    written = repository.upsert_daily_rollups(db, [asdict(row) for row in rows])
    logger.info(
        "Daily metrics rollup complete: domain=%s range=%s..%s tickets=%d rows=%d",
        scope,
        day_start.isoformat(),
        day_end.isoformat(),
        len(tickets),
        written,
    )
    return written
