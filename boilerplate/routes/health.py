"""
API Boilerplate - Health Check Route
=====================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Runs SELECT 1 against the configured database and reports uptime.
Note:  Lives outside the /api prefix, so the envelope middleware leaves its
       response untouched and no audit record is written.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 200 with status flag)
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from boilerplate import __version__
from boilerplate.database import engine
from boilerplate.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
