"""Analytics dashboard and rollup endpoints."""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ticket_analytics.core.config import settings
from ticket_analytics.core.exceptions import BadRequestError, InvalidFilterError
from ticket_analytics.db.session import get_db
from ticket_analytics.schemas.analytics import AnalyticsFilters, AnalyticsOut, AnalyticsQuery, RollupOut, RollupRange
from ticket_analytics.services.analytics import compute_ticket_analytics, run_metrics_rollup
from ticket_analytics.services.analytics.windows import resolve_window, rollup_day_range

router = APIRouter()
logger = logging.getLogger(__name__)


def _build_filters(**raw: str | None) -> AnalyticsFilters:
    try:
        return AnalyticsFilters(**{key: value for key, value in raw.items() if value})
    except ValidationError as exc:
        error = exc.errors()[0]
        field = str(error["loc"][0]) if error.get("loc") else "filters"
        raise InvalidFilterError(field, raw.get(field)) from exc


@router.get("", response_model=AnalyticsOut)
def get_analytics(
    range: str | None = Query(default=None, description="7d, 30d or 90d"),
    start: str | None = Query(default=None),
    end: str | None = Query(default=None),
    status: str | None = Query(default=None),
    priority: str | None = Query(default=None),
    category: str | None = Query(default=None),
    subcategory: str | None = Query(default=None),
    engineer_id: str | None = Query(default=None),
    project_code: str | None = Query(default=None),
    domain: str | None = Query(default=None, max_length=32),
    db: Session = Depends(get_db),
) -> AnalyticsOut:
    window_start, window_end = resolve_window(
        range,
        start,
        end,
        default_range=settings.ANALYTICS_DEFAULT_RANGE,
    )
    filters = _build_filters(
        status=status,
        priority=priority,
        category=category,
        subcategory=subcategory,
        engineer_id=engineer_id,
        project_code=project_code,
    )
    try:
        query = AnalyticsQuery(
            domain=(domain or settings.ANALYTICS_DOMAIN).strip(),
            window_start=window_start,
            window_end=window_end,
            filters=filters,
        )
    except ValidationError as exc:
        raise BadRequestError("invalid_analytics_query", details={"errors": exc.error_count()}) from exc
    return compute_ticket_analytics(db, query)


@router.post("/rollup", response_model=RollupOut)
def post_rollup(
    days: int | None = Query(default=None),
    start_day: dt.date | None = Query(default=None),
    end_day: dt.date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> RollupOut:
    day_start, day_end = rollup_day_range(
        days,
        start_day,
        end_day,
        default_days=settings.ROLLUP_DEFAULT_DAYS,
        max_days=settings.ROLLUP_MAX_DAYS,
    )
    written = run_metrics_rollup(db, day_start, day_end)
    logger.info("Rollup requested via API: %s..%s rows=%d", day_start, day_end, written)
    return RollupOut(
        rolled_up=written,
        days=(day_end - day_start).days + 1,
        range=RollupRange(start=day_start, end=day_end),
    )
