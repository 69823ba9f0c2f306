"""
Virtual Fridge Backend — Notification Service
===============================================

What:  Push notifications about food that is about to expire.
How:   firebase-admin (FCM) initialized once from the service-account JSON
       in FIREBASE_SERVICE_ACCOUNT; messaging.send runs in a worker thread
       because the SDK is blocking.

Without a service account the service stays uninitialized: every send
returns False and the rest of the API keeps working.
"""

import asyncio
import json
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.config import settings
from virtual_fridge.exceptions import ValidationError, VirtualFridgeError
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.user import User
from virtual_fridge.schemas.notification import (
    ExpiringItem,
    NotificationCheckResponse,
    TestNotificationData,
)
from virtual_fridge.services.food_item_service import food_item_service
from virtual_fridge.services.food_type_service import food_type_service

logger = logging.getLogger(__name__)

UNKNOWN_ITEM_NAME = "Unknown item"
MAX_NAMED_ITEMS = 3


def _plural(count: int, word: str) -> str:
    return f"{word}{'' if count == 1 else 's'}"


def build_expiry_message(
    items: Sequence[ExpiringItem], today: Optional[date] = None
) -> Tuple[str, str]:
    """(title, body) for a non-empty list of expiring items."""
    count = len(items)
    title = f"{count} {_plural(count, 'Item')} Expiring Soon!"

    if count == 1:
        item = items[0]
        days = (item.expiration_date - (today or date.today())).days
        body = f"{item.name} expires in {days} {_plural(days, 'day')}"
    else:
        names = ", ".join(item.name for item in items[:MAX_NAMED_ITEMS])
        extra = count - MAX_NAMED_ITEMS
        body = f"{names} and {extra} more" if extra > 0 else names
    return title, body


class NotificationService:
    """
    Responsibilities:
        - initialize(): one-time firebase-admin setup
        - send_notification() / send_expiry_notifications(): FCM delivery
        - find_expiring_items(): the user's items inside their threshold
        - check_user() / send_test(): the per-user flows behind the routes
    """

    def __init__(self, service_account: Optional[str] = None):
        self._service_account = service_account
        self._initialized = False
        self._attempted = False

    def initialize(self) -> bool:
        """Initializes firebase-admin once; later calls return the first result."""
        if self._attempted:
            return self._initialized
        self._attempted = True

        raw = self._service_account if self._service_account is not None else settings.firebase_service_account
        if not raw:
            logger.warning("Firebase service account not configured. Notifications will not work.")
            return False

        try:
            try:
                firebase_admin.get_app()
            except ValueError:
                firebase_admin.initialize_app(credentials.Certificate(json.loads(raw)))
        except (ValueError, OSError) as e:
            logger.error("Failed to initialize Firebase Admin: %s", str(e))
            return False

        self._initialized = True
        logger.info("Firebase Admin initialized successfully")
        return True

    def is_initialized(self) -> bool:
        return self.initialize()

    async def send_notification(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[Dict[str, str]] = None,
    ) -> bool:
        if not self.is_initialized():
            logger.warning("Firebase not initialized. Cannot send notification.")
            return False

        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data or {},
            token=token,
        )
        try:
            message_id = await asyncio.to_thread(messaging.send, message)
        except Exception as e:
            logger.error("Error sending notification: %s", str(e))
            return False

        logger.info("Successfully sent notification: %s", message_id)
        return True

    async def send_expiry_notifications(self, token: str, items: Sequence[ExpiringItem]) -> bool:
        if not items:
            return await self.send_notification(
                token,
                "No Expiring Items",
                "Great news! You have no items expiring soon.",
            )

        title, body = build_expiry_message(items)
        return await self.send_notification(
            token, title, body, {"itemCount": str(len(items)), "type": "expiry"}
        )

    @staticmethod
    def threshold_days(user: User) -> int:
        threshold = user.expiry_threshold_days
        return settings.default_expiry_threshold_days if threshold is None else threshold

    async def find_expiring_items(
        self,
        db: AsyncSession,
        user: User,
        items: Optional[List[FoodItem]] = None,
        today: Optional[date] = None,
    ) -> List[ExpiringItem]:
        """
        Items expiring on or before today + the user's threshold.

        Already-expired items are included; items without a date are not.
        """
        if items is None:
            items = await food_item_service.find_all_by_user_id(db, user.id)
        cutoff = (today or date.today()) + timedelta(days=self.threshold_days(user))

        dated = [i for i in items if i.expiration_date is not None and i.expiration_date <= cutoff]
        if not dated:
            return []

        types = await food_type_service.find_by_ids(db, (i.type_id for i in dated))
        names = {t.id: t.name for t in types}
        return [
            ExpiringItem(
                name=names.get(i.type_id) or UNKNOWN_ITEM_NAME,
                expiration_date=i.expiration_date,
            )
            for i in sorted(dated, key=lambda i: i.expiration_date)
        ]

    async def check_user(self, db: AsyncSession, user: User) -> NotificationCheckResponse:
        """Expiry check for one user, sending a push only when something expires."""
        if not user.fcm_token:
            return NotificationCheckResponse(
                message="No FCM token registered for this user",
                items_expiring=0,
                notification_sent=False,
            )

        items = await food_item_service.find_all_by_user_id(db, user.id)
        if not items:
            return NotificationCheckResponse(
                message="No food items found", items_expiring=0, notification_sent=False
            )

        expiring = await self.find_expiring_items(db, user, items)
        if not expiring:
            return NotificationCheckResponse(
                message="No expiring items", items_expiring=0, notification_sent=False
            )

        sent = await self.send_expiry_notifications(user.fcm_token, expiring)
        return NotificationCheckResponse(
            message=f"Found {len(expiring)} expiring item(s)",
            items_expiring=len(expiring),
            notification_sent=sent,
        )

    async def send_test(self, db: AsyncSession, user: User) -> Optional[TestNotificationData]:
        """
        Sends the user's current expiry summary as a push.

        Returns:
            None when the fridge is empty, otherwise what was sent.

        Raises:
            ValidationError:    the user has no FCM token
            VirtualFridgeError: delivery failed
        """
        if not user.fcm_token:
            raise ValidationError(
                message="No FCM token registered for this user. Please register your device first.",
                field="fcmToken",
            )

        items = await food_item_service.find_all_by_user_id(db, user.id)
        if not items:
            return None

        expiring = await self.find_expiring_items(db, user, items)
        if not await self.send_expiry_notifications(user.fcm_token, expiring):
            raise VirtualFridgeError(message="Failed to send notification")

        return TestNotificationData(
            expiring_items_count=len(expiring),
            expiring_items=expiring,
        )


notification_service = NotificationService()
