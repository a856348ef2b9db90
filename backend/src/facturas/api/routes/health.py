"""
Root and health check endpoints.

Provides system health status for monitoring and load balancers.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text

from facturas import __version__
from facturas.api.dependencies import SessionDep
from facturas.api.schemas import HealthResponse, MessageResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/", response_model=MessageResponse)
async def root() -> MessageResponse:
    return MessageResponse(message="Facturas API - SQLAlchemy with MySQL")


@router.get("/api/health", response_model=HealthResponse)
async def health_check(session: SessionDep) -> HealthResponse:
    """
    Check system health.

    Runs ``SELECT 1`` against the database. A failing database degrades
    the status but the endpoint still answers 200.
    """
    status = "OK"
    database = "connected"
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        status = "DEGRADED"
        database = "unavailable"

    return HealthResponse(
        status=status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        database=database,
    )
