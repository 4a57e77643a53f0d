"""Pydantic schemas for the SLA target endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from ticket_analytics.models.enums import TicketPriority
from ticket_analytics.services.analytics.sla_targets import parse_priority, parse_target_minutes


class SlaConfigOut(BaseModel):
    config: dict[str, int]


class SlaConfigUpdateOut(BaseModel):
    success: bool = True
    config: dict[str, int]


def parse_sla_updates(body: Any) -> dict[TicketPriority, int]:
    """Keep known priorities mapped to positive whole minutes; drop everything else."""
    if not isinstance(body, dict):
        return {}
    updates: dict[TicketPriority, int] = {}
    for key, value in body.items():
        priority = parse_priority(key)
        if isinstance(value, str) and value.strip().isdigit():
            value = int(value.strip())
        minutes = parse_target_minutes(value)
        if priority is None or minutes is None:
            continue
        updates[priority] = minutes
    return updates
