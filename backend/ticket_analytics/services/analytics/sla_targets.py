"""SLA target resolution with hardcoded fallbacks."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from ticket_analytics.models.enums import TicketPriority

logger = logging.getLogger(__name__)

DEFAULT_SLA_MINUTES: dict[TicketPriority, int] = {
    TicketPriority.low: 4320,
    TicketPriority.medium: 1440,
    TicketPriority.high: 480,
    TicketPriority.urgent: 240,
}
FALLBACK_SLA_MINUTES = DEFAULT_SLA_MINUTES[TicketPriority.medium]


def parse_priority(value: Any) -> TicketPriority | None:
    raw = value.value if hasattr(value, "value") else value
    token = str(raw or "").strip().upper()
    try:
        return TicketPriority(token)
    except ValueError:
        return None


def parse_target_minutes(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        return None
    return value


def default_sla_targets() -> dict[TicketPriority, int]:
    return dict(DEFAULT_SLA_MINUTES)


def resolve_sla_targets(rows: Iterable[Any] | None) -> dict[TicketPriority, int]:
    """Overlay stored SLA rows on the defaults, skipping rows that do not parse."""
    targets = default_sla_targets()
    for row in rows or ():
        priority = parse_priority(getattr(row, "priority", None))
        minutes = parse_target_minutes(getattr(row, "target_minutes", None))
        if priority is None or minutes is None:
            logger.warning(
                "Ignoring invalid SLA config row priority=%r target_minutes=%r",
                getattr(row, "priority", None),
                getattr(row, "target_minutes", None),
            )
            continue
        targets[priority] = minutes
    return targets


def target_for(priority: Any, targets: Mapping[TicketPriority, int]) -> int:
    parsed = parse_priority(priority)
    if parsed is None:
        return FALLBACK_SLA_MINUTES
    return targets.get(parsed) or FALLBACK_SLA_MINUTES
