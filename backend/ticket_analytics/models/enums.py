"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class TicketStatus(str, enum.Enum):
    open = "OPEN"
    in_progress = "IN_PROGRESS"
    waiting_on_requester = "WAITING_ON_REQUESTER"
    resolved = "RESOLVED"
    closed = "CLOSED"
    pending_approval = "PENDING_APPROVAL"


class TicketPriority(str, enum.Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    urgent = "URGENT"


class TicketEventType(str, enum.Enum):
    status_changed = "STATUS_CHANGED"
    assigned = "ASSIGNED"
    commented = "COMMENTED"
    sla_warning = "SLA_WARNING"
    sla_breach = "SLA_BREACH"


class ResolutionPolicy(str, enum.Enum):
    earliest = "earliest"
    latest = "latest"


# Breakdown order used by the dashboard payloads.
STATUS_ORDER = (
    TicketStatus.open,
    TicketStatus.in_progress,
    TicketStatus.waiting_on_requester,
    TicketStatus.resolved,
    TicketStatus.closed,
    TicketStatus.pending_approval,
)
PRIORITY_ORDER = (
    TicketPriority.urgent,
    TicketPriority.high,
    TicketPriority.medium,
    TicketPriority.low,
)
RESOLVED_STATUSES = {TicketStatus.resolved, TicketStatus.closed}
