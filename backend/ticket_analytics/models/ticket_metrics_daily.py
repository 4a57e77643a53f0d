"""Daily rollup of ticket counts for long-horizon dashboards."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ticket_analytics.db.base import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class TicketMetricsDaily(Base):
    __tablename__ = "ticket_metrics_daily"

    day: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    opened: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    resolved: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    sla_breached: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    mtta_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    mttr_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
