"""Storage boundary for the analytics engine.

Every read returns plain model rows or validated timeline events; any
SQLAlchemy failure is re-raised as ``DatabaseQueryError`` so a single failed
fetch aborts the whole computation.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ticket_analytics.core.exceptions import DatabaseQueryError, InvalidFilterError
from ticket_analytics.models.enums import TicketPriority
from ticket_analytics.models.sla_config import SlaConfig
from ticket_analytics.models.ticket import Ticket, TicketAssignment, TicketEvent
from ticket_analytics.models.ticket_metrics_daily import TicketMetricsDaily
from ticket_analytics.models.user import User
from ticket_analytics.schemas.analytics import AnalyticsFilters
from ticket_analytics.schemas.events import TIMELINE_EVENT_TYPES, timeline_event_from_row
from ticket_analytics.services.analytics.aggregator import AssignedEngineer
from ticket_analytics.services.analytics.sla_targets import default_sla_targets, resolve_sla_targets
from ticket_analytics.services.analytics.timeline import TimelineEntry
from ticket_analytics.services.analytics.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _run(label: str, operation: Callable[[], T]) -> T:
    try:
        return operation()
    except SQLAlchemyError as exc:
        logger.exception("Analytics fetch failed: %s", label)
        raise DatabaseQueryError(f"{label}_failed", query=label) from exc


def _engineer_uuids(engineer_ids: Iterable[str]) -> list[UUID]:
    parsed: list[UUID] = []
    for raw in engineer_ids:
        try:
            parsed.append(UUID(str(raw)))
        except ValueError as exc:
            raise InvalidFilterError("engineer_id", raw) from exc
    return parsed


def fetch_tickets(
    db: Session,
    *,
    domain: str,
    start: dt.datetime,
    end: dt.datetime,
    filters: AnalyticsFilters,
    end_inclusive: bool = True,
) -> list[Ticket]:
    """Tickets created in the window matching every set-membership filter except engineer."""
    stmt = (
        select(Ticket)
        .options(selectinload(Ticket.requester))
        .where(Ticket.domain == domain)
        .where(Ticket.created_at >= start)
        .where(Ticket.created_at <= end if end_inclusive else Ticket.created_at < end)
        .order_by(Ticket.created_at.asc())
    )
    if filters.status:
        stmt = stmt.where(Ticket.status.in_(filters.status))
    if filters.priority:
        stmt = stmt.where(Ticket.priority.in_(filters.priority))
    if filters.category:
        stmt = stmt.where(Ticket.category.in_(filters.category))
    if filters.subcategory:
        stmt = stmt.where(Ticket.subcategory.in_(filters.subcategory))
    if filters.project_code:
        stmt = stmt.where(Ticket.project_code.in_(filters.project_code))
    return _run("fetch_tickets", lambda: list(db.execute(stmt).scalars().all()))


def fetch_engineer_ticket_ids(db: Session, engineer_ids: Sequence[str]) -> set[str]:
    """IDs of tickets currently assigned to any of the given engineers."""
    return _fetch_engineer_ticket_ids(db, _engineer_uuids(engineer_ids))


def _fetch_engineer_ticket_ids(db: Session, uuids: list[UUID]) -> set[str]:
    stmt = (
        select(TicketAssignment.ticket_id)
        .where(TicketAssignment.engineer_id.in_(uuids))
        .where(TicketAssignment.unassigned_at.is_(None))
    )
    return _run("fetch_engineer_ticket_ids", lambda: {str(row) for row in db.execute(stmt).scalars().all()})


def apply_engineer_filter(db: Session, tickets: list[Ticket], engineer_ids: Sequence[str]) -> list[Ticket]:
    if not engineer_ids:
        return tickets
    uuids = _engineer_uuids(engineer_ids)
    if not tickets:
        return tickets
    allowed = _fetch_engineer_ticket_ids(db, uuids)
    return [ticket for ticket in tickets if str(ticket.id) in allowed]


def fetch_active_assignments(db: Session, ticket_ids: Sequence[str]) -> dict[str, AssignedEngineer]:
    """Active assignment per ticket; the latest ``assigned_at`` wins if several are active."""
    if not ticket_ids:
        return {}
    stmt = (
        select(TicketAssignment, User)
        .join(User, User.id == TicketAssignment.engineer_id)
        .where(TicketAssignment.ticket_id.in_(list(ticket_ids)))
        .where(TicketAssignment.unassigned_at.is_(None))
        .order_by(TicketAssignment.assigned_at.asc())
    )
    rows = _run("fetch_active_assignments", lambda: db.execute(stmt).all())

    assignments: dict[str, AssignedEngineer] = {}
    for assignment, engineer in rows:
        email = str(engineer.email or "")
        assignments[str(assignment.ticket_id)] = AssignedEngineer(
            id=str(engineer.id),
            name=(engineer.name or "").strip() or email.split("@")[0] or "Unassigned",
            email=email,
            assigned_at=as_utc(assignment.assigned_at),
        )
    return assignments


def fetch_timeline_events(
    db: Session,
    ticket_ids: Sequence[str],
    event_types: Sequence[str] = TIMELINE_EVENT_TYPES,
) -> list[TimelineEntry]:
    if not ticket_ids:
        return []
    stmt = (
        select(TicketEvent)
        .where(TicketEvent.ticket_id.in_(list(ticket_ids)))
        .where(TicketEvent.type.in_(list(event_types)))
        .order_by(TicketEvent.created_at.asc())
    )
    rows = _run("fetch_timeline_events", lambda: db.execute(stmt).scalars().all())
    events: list[TimelineEntry] = []
    for row in rows:
        event = timeline_event_from_row(row)
        if event is not None:
            events.append(event)
    return events


def fetch_recent_events(db: Session, ticket_ids: Sequence[str], *, limit: int) -> list[TicketEvent]:
    if not ticket_ids or limit <= 0:
        return []
    stmt = (
        select(TicketEvent)
        .options(selectinload(TicketEvent.creator))
        .where(TicketEvent.ticket_id.in_(list(ticket_ids)))
        .order_by(TicketEvent.created_at.desc())
        .limit(limit)
    )
    return _run("fetch_recent_events", lambda: list(db.execute(stmt).scalars().all()))


def fetch_sla_config_rows(db: Session) -> list[SlaConfig]:
    return _run("fetch_sla_config", lambda: list(db.execute(select(SlaConfig)).scalars().all()))


def load_sla_targets(db: Session) -> dict[TicketPriority, int]:
    """Stored SLA targets over the defaults; a failed lookup falls back to defaults."""
    try:
        rows = fetch_sla_config_rows(db)
    except DatabaseQueryError:
        logger.warning("SLA config lookup failed, using default targets")
        db.rollback()
        return default_sla_targets()
    return resolve_sla_targets(rows)


def upsert_sla_targets(db: Session, updates: Mapping[TicketPriority, int]) -> None:
    now = utcnow()

    def _write() -> None:
        for priority, minutes in updates.items():
            row = db.get(SlaConfig, priority.value)
            if row is None:
                db.add(SlaConfig(priority=priority.value, target_minutes=minutes, created_at=now, updated_at=now))
            else:
                row.target_minutes = minutes
                row.updated_at = now
                db.add(row)
        db.commit()

    try:
        _run("upsert_sla_config", _write)
    except DatabaseQueryError:
        db.rollback()
        raise
    logger.info("SLA targets updated: %s", {p.value: m for p, m in updates.items()})


def upsert_daily_rollups(db: Session, rows: Sequence[Mapping[str, object]]) -> int:
    """Insert-or-replace one ``TicketMetricsDaily`` row per day key."""
    if not rows:
        return 0
    now = utcnow()

    def _write() -> int:
        for values in rows:
            day = values["day"]
            record = db.get(TicketMetricsDaily, day)
            if record is None:
                record = TicketMetricsDaily(day=day, created_at=now)
            record.opened = int(values["opened"])
            record.resolved = int(values["resolved"])
            record.sla_breached = int(values["sla_breached"])
            record.mtta_minutes = int(values["mtta_minutes"])
            record.mttr_minutes = int(values["mttr_minutes"])
            record.updated_at = now
            db.add(record)
        db.commit()
        return len(rows)

    try:
        return _run("upsert_daily_rollups", _write)
    except DatabaseQueryError:
        db.rollback()
        raise
