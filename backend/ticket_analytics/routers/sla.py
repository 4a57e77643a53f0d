"""SLA target configuration endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ticket_analytics.core.exceptions import BadRequestError
from ticket_analytics.db.session import get_db
from ticket_analytics.schemas.sla import SlaConfigOut, SlaConfigUpdateOut, parse_sla_updates
from ticket_analytics.services.analytics import repository

router = APIRouter()
logger = logging.getLogger(__name__)


def _config_dict(db: Session) -> dict[str, int]:
    return {priority.value: minutes for priority, minutes in repository.load_sla_targets(db).items()}


@router.get("", response_model=SlaConfigOut)
def get_sla_config(db: Session = Depends(get_db)) -> SlaConfigOut:
    return SlaConfigOut(config=_config_dict(db))


@router.put("", response_model=SlaConfigUpdateOut)
def update_sla_config(
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
) -> SlaConfigUpdateOut:
    updates = parse_sla_updates(payload)
    if not updates:
        raise BadRequestError("no_valid_sla_values", details={"keys": sorted(str(key) for key in payload)})
    repository.upsert_sla_targets(db, updates)
    return SlaConfigUpdateOut(config=_config_dict(db))
