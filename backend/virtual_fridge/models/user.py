"""
Virtual Fridge Backend — User SQLAlchemy Model
================================================

What:  ORM model for the `users` table.
How:   One row per Google account. Nested preference objects, which the
       mobile client edits as whole documents, are stored as JSON columns.

Table Design:
    - UUID primary key, exposed to clients as `_id`
    - google_id: unique; the identity Google sign-in resolves to
    - email: unique, always lower-case
    - hobbies / dietary_preferences / notification_preferences: JSON
    - fcm_token: Firebase Cloud Messaging registration token (nullable)
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from virtual_fridge.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A signed-in person and their fridge settings.

    Query Patterns:
        - Sign-in: WHERE google_id = :sub (unique index)
        - Expiry job: WHERE fcm_token IS NOT NULL AND fcm_token != ''
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    google_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    profile_picture: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Max 500 chars, enforced by the request schema
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    hobbies: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # {vegetarian, vegan, halal, keto}
    dietary_preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # {enableNotifications, expiryThresholdDays, notificationTime}
    notification_preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    fcm_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("idx_users_fcm_token", "fcm_token"),
    )

    @validates("email")
    def _lowercase_email(self, key: str, value: str) -> str:
        return value.strip().lower()

    @property
    def expiry_threshold_days(self) -> Optional[int]:
        """The user's own threshold, or None when they never set one."""
        prefs = self.notification_preferences or {}
        return prefs.get("expiryThresholdDays")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
