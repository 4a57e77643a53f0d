"""Pydantic schemas for the analytics query and dashboard payload."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ticket_analytics.models.enums import TicketPriority, TicketStatus


def _clean_tokens(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    cleaned: list[str] = []
    for item in value:
        token = str(item.value if hasattr(item, "value") else item).strip()
        if token and token not in cleaned:
            cleaned.append(token)
    return cleaned


class AnalyticsFilters(BaseModel):
    status: list[TicketStatus] = Field(default_factory=list)
    priority: list[TicketPriority] = Field(default_factory=list)
    category: list[str] = Field(default_factory=list)
    subcategory: list[str] = Field(default_factory=list)
    engineer_id: list[str] = Field(default_factory=list)
    project_code: list[str] = Field(default_factory=list)

    @field_validator("status", "priority", mode="before")
    @classmethod
    def normalize_enum_tokens(cls, value: Any) -> list[str]:
        return [token.upper().replace("-", "_").replace(" ", "_") for token in _clean_tokens(value)]

    @field_validator("category", "subcategory", "engineer_id", "project_code", mode="before")
    @classmethod
    def normalize_text_tokens(cls, value: Any) -> list[str]:
        return _clean_tokens(value)


class AnalyticsQuery(BaseModel):
    domain: str = Field(min_length=1, max_length=32)
    window_start: dt.datetime
    window_end: dt.datetime
    filters: AnalyticsFilters = Field(default_factory=AnalyticsFilters)

    @field_validator("window_start", "window_end")
    @classmethod
    def normalize_utc(cls, value: dt.datetime) -> dt.datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.timezone.utc)
        return value.astimezone(dt.timezone.utc)

    @model_validator(mode="after")
    def check_window_order(self) -> AnalyticsQuery:
        if self.window_end < self.window_start:
            raise ValueError("window_end must not be before window_start")
        return self


class AnalyticsRange(BaseModel):
    start: dt.datetime
    end: dt.datetime
    days: int


class AnalyticsSummary(BaseModel):
    total: int = 0
    open: int = 0
    backlog: int = 0
    unassigned: int = 0
    sla_breached: int = 0
    sla_on_track: int = 0
    sla_at_risk: int = 0


class AnalyticsMetrics(BaseModel):
    avg_mtta_minutes: int = 0
    avg_mttr_minutes: int = 0
    resolved: int = 0
    reopened: int = 0
    reopen_rate: float = 0.0
    first_contact_resolutions: int = 0
    first_contact_resolution_rate: float = 0.0


class AnalyticsBreakdowns(BaseModel):
    by_status: dict[str, int]
    by_priority: dict[str, int]
    by_category: dict[str, int] = Field(default_factory=dict)
    by_subcategory: dict[str, int] = Field(default_factory=dict)


class DailyVolumePoint(BaseModel):
    day: dt.date
    opened: int = 0
    resolved: int = 0


class DailyValuePoint(BaseModel):
    day: dt.date
    value: int = 0


class AnalyticsTrends(BaseModel):
    volume: list[DailyVolumePoint]
    sla_breaches: list[DailyValuePoint]
    mtta_minutes: list[DailyValuePoint]
    mttr_minutes: list[DailyValuePoint]


class BacklogAgingBucket(BaseModel):
    band: str
    count: int = 0


class LeaderboardEntry(BaseModel):
    id: str
    name: str
    email: str
    assigned: int
    resolved: int
    breached: int
    avg_resolution_minutes: int


class WorkloadEntry(BaseModel):
    id: str
    name: str
    email: str
    open: int
    resolved: int


class ComparisonPair(BaseModel):
    current: int
    previous: int


class PeriodComparison(BaseModel):
    total: ComparisonPair
    resolved: ComparisonPair
    breached: ComparisonPair
    previous_range: AnalyticsRange | None = None


class SlaPriorityRow(BaseModel):
    priority: TicketPriority
    total: int
    breached: int
    target_minutes: int


class TicketExportRow(BaseModel):
    id: str
    ticket_number: str | None = None
    title: str | None = None
    status: str
    priority: str
    category: str
    subcategory: str
    created_at: dt.datetime | None = None
    resolved_at: dt.datetime | None = None
    closed_at: dt.datetime | None = None
    project_code: str = ""
    project_name: str = ""
    requester_name: str = "Unknown"
    requester_email: str = ""
    assignee_name: str = "Unassigned"
    assignee_email: str = ""
    sla_target_minutes: int
    sla_elapsed_minutes: int
    sla_breached: bool


class RecentActivityItem(BaseModel):
    id: str
    ticket_id: str
    type: str
    created_at: dt.datetime | None = None
    ticket_number: str = "Unknown"
    ticket_title: str = ""
    creator_name: str = "User"
    creator_email: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class AnalyticsOut(BaseModel):
    range: AnalyticsRange
    summary: AnalyticsSummary
    metrics: AnalyticsMetrics
    breakdowns: AnalyticsBreakdowns
    trends: AnalyticsTrends
    backlog_aging: list[BacklogAgingBucket]
    leaderboard: list[LeaderboardEntry]
    workload: list[WorkloadEntry]
    comparison: PeriodComparison
    sla: list[SlaPriorityRow]
    sla_config: dict[str, int]
    tickets: list[TicketExportRow] = Field(default_factory=list)
    recent_activity: list[RecentActivityItem] = Field(default_factory=list)


class RollupRange(BaseModel):
    start: dt.date
    end: dt.date


class RollupOut(BaseModel):
    rolled_up: int
    days: int
    range: RollupRange
