"""Per-priority SLA resolution targets."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ticket_analytics.db.base import Base


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class SlaConfig(Base):
    __tablename__ = "sla_config"

    # Stored as text so a bad row can be skipped instead of failing the whole read.
    priority: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
