"""
Virtual Fridge Backend — User Service
=======================================

What:  Profile CRUD for signed-in users.
How:   Stateless; every call receives the request's AsyncSession and only
       flushes. The session dependency commits when the request succeeds.

Stored preference objects keep the client's camelCase keys
(enableNotifications, expiryThresholdDays) so they round-trip untouched.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.exceptions import DatabaseError, ValidationError
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.user import User
from virtual_fridge.schemas.user import HOBBIES, GoogleUserInfo, UpdateProfileRequest

logger = logging.getLogger(__name__)


class UserService:
    """
    Responsibilities:
        - create_user / get_user / find_by_google_id
        - update_user(): partial profile update with hobby validation
        - delete_user(): removes the user and their fridge contents
        - find_users_with_fcm_tokens(): recipients for the expiry job
    """

    async def create_user(self, db: AsyncSession, google_info: GoogleUserInfo) -> User:
        user = User(
            google_id=google_info.google_id,
            email=google_info.email,
            name=google_info.name,
            profile_picture=google_info.profile_picture,
            hobbies=[],
        )
        try:
            db.add(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create user: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create user") from e

        logger.info("User created: %s", user.id)
        return user

    async def get_user(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_google_id(self, db: AsyncSession, google_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.google_id == google_id))
        return result.scalar_one_or_none()

    async def update_user(
        self, db: AsyncSession, user_id: UUID, update: UpdateProfileRequest
    ) -> Optional[User]:
        """
        Writes only the fields the client sent.

        Returns:
            The updated user, or None when the user no longer exists.

        Raises:
            ValidationError: a hobby outside HOBBIES
        """
        changes = update.model_dump(exclude_unset=True)
        if "hobbies" in changes and changes["hobbies"] is not None:
            unknown = [h for h in changes["hobbies"] if h not in HOBBIES]
            if unknown:
                raise ValidationError(
                    message=f"Hobby must be in available hobbies list: {', '.join(unknown)}",
                    field="hobbies",
                )

        user = await self.get_user(db, user_id)
        if user is None:
            return None

        for field, value in changes.items():
            if field in ("dietary_preferences", "notification_preferences") and value is not None:
                value = getattr(update, field).model_dump(by_alias=True, exclude_none=True)
            setattr(user, field, value)

        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to update user") from e

        logger.info("User %s updated fields: %s", user_id, ", ".join(sorted(changes)))
        return user

    async def delete_user(self, db: AsyncSession, user_id: UUID) -> None:
        """Deletes the user and their food items; stored images are handled by the caller."""
        try:
            await db.execute(delete(FoodItem).where(FoodItem.user_id == user_id))
            await db.execute(delete(User).where(User.id == user_id))
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete user %s: %s", user_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to delete user") from e
        logger.info("User deleted: %s", user_id)

    async def find_users_with_fcm_tokens(self, db: AsyncSession) -> List[User]:
        result = await db.execute(
            select(User).where(User.fcm_token.is_not(None), User.fcm_token != "")
        )
        return list(result.scalars().all())


user_service = UserService()
