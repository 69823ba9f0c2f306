"""
Virtual Fridge Backend — Expiry Notification Scheduler
========================================================

What:  Twice-daily sweep that pushes "expiring soon" notifications.
How:   APScheduler AsyncIOScheduler with CronTrigger(minute=0,
       hour=NOTIFICATION_HOURS) in NOTIFICATION_TIMEZONE. Each run opens
       its own database session; it is not tied to any request.

A failure for one user is counted and logged; the sweep moves on to the
next user.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.config import settings
from virtual_fridge.database import async_session_factory
from virtual_fridge.models.user import User
from virtual_fridge.schemas.notification import (
    DebugResponse,
    DebugUser,
    NotificationRunSummary,
)
from virtual_fridge.services.food_item_service import food_item_service
from virtual_fridge.services.notification_service import (
    NotificationService,
    notification_service,
)
from virtual_fridge.services.user_service import user_service

logger = logging.getLogger(__name__)

JOB_ID = "expiry-notifications"
TOKEN_PREVIEW_CHARS = 20


class ExpiryNotificationScheduler:

    def __init__(
        self,
        session_factory: Callable[[], Any] = async_session_factory,
        notifications: Optional[NotificationService] = None,
    ):
        self.session_factory = session_factory
        self.notifications = notifications or notification_service
        self._scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False

    def start(self) -> None:
        if self.is_running:
            logger.info("Expiry scheduler is already running")
            return

        if self.notifications.is_initialized():
            logger.info("Firebase Admin SDK: INITIALIZED")
        else:
            logger.error(
                "Firebase Admin SDK: NOT INITIALIZED. Notifications will NOT be delivered; "
                "set FIREBASE_SERVICE_ACCOUNT"
            )

        self._scheduler = AsyncIOScheduler(timezone=settings.notification_timezone)
        self._scheduler.add_job(
            self.trigger_notification_check,
            CronTrigger(minute=0, hour=settings.notification_hours),
            id=JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self.is_running = True
        logger.info(
            "Expiry scheduler started (hours=%s, tz=%s)",
            settings.notification_hours,
            settings.notification_timezone,
        )

    def stop(self) -> None:
        if not self.is_running:
            logger.info("Expiry scheduler is not running")
            return
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
        self.is_running = False
        logger.info("Expiry scheduler stopped")

    async def process_user(self, db: AsyncSession, user: User) -> bool:
        """Returns True when a notification was delivered to this user."""
        expiring = await self.notifications.find_expiring_items(db, user)
        logger.debug("User %s: %d expiring item(s)", user.id, len(expiring))
        if not expiring:
            return False

        sent = await self.notifications.send_expiry_notifications(user.fcm_token, expiring)
        if sent:
            logger.info("Expiry notification sent to user %s", user.id)
        else:
            logger.warning("Could not send expiry notification to user %s", user.id)
        return sent

    async def trigger_notification_check(self) -> NotificationRunSummary:
        """One full sweep over every user with an FCM token."""
        start = time.perf_counter()
        summary = NotificationRunSummary()

        async with self.session_factory() as db:
            users = await user_service.find_users_with_fcm_tokens(db)
            logger.info("Expiry check: %d user(s) with FCM tokens", len(users))

            for user in users:
                try:
                    # A failed statement only unwinds this user's savepoint
                    async with db.begin_nested():
                        sent = await self.process_user(db, user)
                    if sent:
                        summary.notifications_sent += 1
                    summary.users_processed += 1
                except Exception:
                    summary.errors += 1
                    logger.exception("Error processing notifications for user %s", user.id)

        summary.duration_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Expiry check completed in %dms: processed=%d sent=%d errors=%d",
            summary.duration_ms,
            summary.users_processed,
            summary.notifications_sent,
            summary.errors,
        )
        return summary

    async def debug_snapshot(self, db: AsyncSession) -> DebugResponse:
        """Per-user view of what the next sweep would see."""
        users = await user_service.find_users_with_fcm_tokens(db)
        entries = []
        for user in users:
            items = await food_item_service.find_all_by_user_id(db, user.id)
            token = user.fcm_token or ""
            entries.append(DebugUser(
                user_id=user.id,
                email=user.email,
                has_fcm_token=bool(token),
                fcm_token_preview=f"{token[:TOKEN_PREVIEW_CHARS]}..." if token else None,
                total_items=len(items),
                items_with_expiry=sum(1 for i in items if i.expiration_date is not None),
                expiry_threshold=self.notifications.threshold_days(user),
            ))
        return DebugResponse(
            firebase_initialized=self.notifications.is_initialized(),
            total_users_with_tokens=len(users),
            users=entries,
        )


expiry_scheduler = ExpiryNotificationScheduler()
