"""Typed ticket event payloads validated at the storage boundary."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ticket_analytics.models.enums import TicketEventType

logger = logging.getLogger(__name__)

TIMELINE_EVENT_TYPES = (TicketEventType.status_changed.value, TicketEventType.assigned.value)
UNASSIGNED_ACTION = "unassigned"


def _parse_timestamp(value: Any) -> dt.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


class StatusChangedPayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    old_status: str | None = Field(default=None, alias="oldStatus")
    new_status: str | None = Field(default=None, alias="newStatus")

    @field_validator("old_status", "new_status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> str | None:
        if hasattr(value, "value"):
            value = value.value
        if not isinstance(value, str):
            return None
        cleaned = value.strip().upper().replace("-", "_").replace(" ", "_")
        return cleaned or None


class AssignedPayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    action: str | None = None
    engineer_id: str | None = Field(default=None, alias="engineerId")

    @field_validator("action", mode="before")
    @classmethod
    def normalize_action(cls, value: Any) -> str | None:
        if not isinstance(value, str):
            return None
        cleaned = value.strip().lower()
        return cleaned or None

    @field_validator("engineer_id", mode="before")
    @classmethod
    def normalize_engineer_id(cls, value: Any) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @property
    def is_unassignment(self) -> bool:
        return self.action == UNASSIGNED_ACTION


class _TimelineEventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticket_id: str
    created_at: dt.datetime | None = None

    @field_validator("ticket_id", mode="before")
    @classmethod
    def normalize_ticket_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def normalize_created_at(cls, value: Any) -> dt.datetime | None:
        return _parse_timestamp(value)


class StatusChangedEvent(_TimelineEventBase):
    type: Literal["STATUS_CHANGED"] = "STATUS_CHANGED"
    payload: StatusChangedPayload = Field(default_factory=StatusChangedPayload)


class AssignedEvent(_TimelineEventBase):
    type: Literal["ASSIGNED"] = "ASSIGNED"
    payload: AssignedPayload = Field(default_factory=AssignedPayload)


TimelineEvent = Annotated[Union[StatusChangedEvent, AssignedEvent], Field(discriminator="type")]
_TIMELINE_EVENT_ADAPTER: TypeAdapter[TimelineEvent] = TypeAdapter(TimelineEvent)


def timeline_event_from_row(row: Any) -> StatusChangedEvent | AssignedEvent | None:
    """Validate one raw event row into its tagged variant.

    Returns ``None`` for event types the timeline does not interpret. A payload
    that fails validation is replaced by an empty payload so the event still
    counts; the row is never dropped.
    """
    event_type = str(getattr(row, "type", "") or "").strip().upper()
    if event_type not in TIMELINE_EVENT_TYPES:
        return None

    ticket_id = getattr(row, "ticket_id", None)
    created_at = getattr(row, "created_at", None)
    payload = getattr(row, "payload", None)
    try:
        return _TIMELINE_EVENT_ADAPTER.validate_python(
            {
                "type": event_type,
                "ticket_id": ticket_id,
                "created_at": created_at,
                "payload": payload if isinstance(payload, dict) else {},
            }
        )
    except ValidationError as exc:
        logger.warning(
            "Malformed %s payload on ticket %s; using empty payload (%s)",
            event_type,
            ticket_id,
            exc.error_count(),
        )
        return _TIMELINE_EVENT_ADAPTER.validate_python(
            {"type": event_type, "ticket_id": ticket_id, "created_at": created_at}
        )
