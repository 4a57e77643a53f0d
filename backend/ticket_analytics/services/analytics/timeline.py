"""Per-ticket event timelines rebuilt from the raw event log."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from ticket_analytics.schemas.events import AssignedEvent, StatusChangedEvent

TimelineEntry = StatusChangedEvent | AssignedEvent
Timelines = dict[str, list[TimelineEntry]]

_MIN_TS = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def _sort_key(event: TimelineEntry) -> dt.datetime:
    return event.created_at or _MIN_TS


def build_timelines(events: Iterable[TimelineEntry], ticket_ids: Iterable[str] | None = None) -> Timelines:
    """Group events by ticket and order each group by ``created_at``.

    The sort is stable, so events sharing a timestamp keep their row order.
    When ``ticket_ids`` is given every listed ticket gets an entry, even with
    no events.
    """
    grouped: Timelines = {str(ticket_id): [] for ticket_id in ticket_ids or ()}
    for event in events:
        grouped.setdefault(event.ticket_id, []).append(event)
    for ticket_events in grouped.values():
        ticket_events.sort(key=_sort_key)
    return grouped


def status_events(events: Iterable[TimelineEntry]) -> list[StatusChangedEvent]:
    return [event for event in events if isinstance(event, StatusChangedEvent)]


def assignment_events(events: Iterable[TimelineEntry]) -> list[AssignedEvent]:
    return [event for event in events if isinstance(event, AssignedEvent)]
