"""
Virtual Fridge Backend — Notification Routes
==============================================

/test and /check act on the caller. The /admin routes are unauthenticated
operator tools for running and inspecting the expiry sweep.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.notification import (
    DebugResponse,
    NotificationCheckResponse,
    TestNotificationResponse,
    TriggerResponse,
)
from virtual_fridge.services.notification_service import notification_service
from virtual_fridge.services.scheduler_service import expiry_scheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.post(
    "/test",
    response_model=TestNotificationResponse,
    response_model_exclude_none=True,
    responses={
        400: {"description": "No FCM token registered", "model": ErrorResponse},
        500: {"description": "Delivery failed", "model": ErrorResponse},
    },
    summary="Push the caller's current expiry summary",
)
async def send_test_notification(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> TestNotificationResponse:
    data = await notification_service.send_test(db, user)
    if data is None:
        return TestNotificationResponse(message="No food items found in your fridge")
    return TestNotificationResponse(message="Test notification sent successfully", data=data)


@router.post(
    "/check",
    response_model=NotificationCheckResponse,
    summary="Run the expiry check for the caller now",
)
async def check_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationCheckResponse:
    return await notification_service.check_user(db, user)


@router.post(
    "/admin/trigger",
    response_model=TriggerResponse,
    summary="Run the expiry sweep for every user now",
)
async def trigger_notification_check():
    try:
        summary = await expiry_scheduler.trigger_notification_check()
    except Exception as e:
        logger.error("Manual notification check failed: %s", str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to trigger notification check", "error": str(e)},
        )
    return TriggerResponse(
        message="Notification check triggered successfully. Check server logs for details.",
        summary=summary,
    )


@router.get(
    "/admin/debug",
    response_model=DebugResponse,
    summary="What the next sweep would see, per user",
)
async def debug_notifications(db: AsyncSession = Depends(get_db_session)):
    try:
        return await expiry_scheduler.debug_snapshot(db)
    except Exception as e:
        logger.error("Notification debug failed: %s", str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"message": "Debug failed", "error": str(e)},
        )
