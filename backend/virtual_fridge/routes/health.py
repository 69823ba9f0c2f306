"""
Virtual Fridge Backend — Health Check Route
=============================================

Status levels:
    - healthy:  database reachable and Gemini available
    - degraded: something is down; still HTTP 200 so the app keeps
                serving the routes that do not need it
"""

import logging

from fastapi import APIRouter
from sqlalchemy import text

from virtual_fridge import __version__
from virtual_fridge.database import engine
from virtual_fridge.schemas.common import HealthResponse
from virtual_fridge.services.gemini_service import gemini_service
from virtual_fridge.services.notification_service import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    """Runs SELECT 1 and a Gemini list_models probe; reports push status."""
    overall = "healthy"

    db_status = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "degraded"
        logger.warning("Health check: database unreachable: %s", str(e))

    if gemini_service.circuit_breaker.state == gemini_service.circuit_breaker.OPEN:
        gemini_status = "circuit_open"
        overall = "degraded"
    elif await gemini_service.health_check():
        gemini_status = "available"
    else:
        gemini_status = "unavailable"
        overall = "degraded"

    firebase_status = "initialized" if notification_service.is_initialized() else "disabled"

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        gemini=gemini_status,
        firebase=firebase_status,
    )
