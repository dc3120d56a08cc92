"""Health endpoint for load balancers and uptime checks."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from corpgate.core.config import get_settings
from corpgate.core.database import check_db_connected, get_db
from corpgate.schemas.health import HealthResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    """Always HTTP 200; a lost database shows up as status=degraded."""
    if check_db_connected(db):
        return HealthResponse(environment=get_settings().APP_ENV, database="connected")
    logger.warning("Health check: database unreachable")
    return HealthResponse(
        status="degraded",
        environment=get_settings().APP_ENV,
        database="disconnected",
    )
