"""
Notification schemas: user-triggered checks and the admin/debug views.
"""

import uuid
from datetime import date
from typing import List, Optional

from pydantic import Field

from virtual_fridge.schemas.common import ApiModel


class ExpiringItem(ApiModel):
    name: str
    expiration_date: date


class TestNotificationData(ApiModel):
    expiring_items_count: int
    expiring_items: List[ExpiringItem]


class TestNotificationResponse(ApiModel):
    message: str
    data: Optional[TestNotificationData] = None


class NotificationCheckResponse(ApiModel):
    message: str
    items_expiring: int
    notification_sent: bool


class NotificationRunSummary(ApiModel):
    users_processed: int = 0
    notifications_sent: int = 0
    errors: int = 0
    duration_ms: int = 0


class TriggerResponse(ApiModel):
    message: str
    summary: NotificationRunSummary


class DebugUser(ApiModel):
    user_id: uuid.UUID
    email: str
    has_fcm_token: bool
    fcm_token_preview: Optional[str] = None
    total_items: int
    items_with_expiry: int
    expiry_threshold: int


class DebugResponse(ApiModel):
    firebase_initialized: bool
    total_users_with_tokens: int
    users: List[DebugUser] = Field(default_factory=list)
