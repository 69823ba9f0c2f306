"""
Virtual Fridge Backend — FoodItem Service
===========================================

What:  CRUD for items in a user's fridge.
How:   Stateless, session passed per call. Ownership (user_id) and kind
       (type_id) are fixed at creation; updates only touch the expiration
       date and the amount left.
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.exceptions import DatabaseError, NotFoundError
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.schemas.food import FoodItemUpdate
from virtual_fridge.services.food_type_service import food_type_service

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("expiration_date", "percent_left")


class FoodItemService:

    async def create(
        self,
        db: AsyncSession,
        user_id: UUID,
        type_id: UUID,
        percent_left: int = 100,
        expiration_date: Optional[date] = None,
    ) -> FoodItem:
        item = FoodItem(
            user_id=user_id,
            type_id=type_id,
            percent_left=percent_left,
            expiration_date=expiration_date,
        )
        try:
            db.add(item)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create food item: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create food item") from e
        logger.info("FoodItem created: %s for user %s", item.id, user_id)
        return item

    async def find_by_id(self, db: AsyncSession, item_id: UUID) -> Optional[FoodItem]:
        result = await db.execute(select(FoodItem).where(FoodItem.id == item_id))
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, item_id: UUID, user_id: UUID) -> FoodItem:
        """Another user's item is reported as missing."""
        item = await self.find_by_id(db, item_id)
        if item is None or item.user_id != user_id:
            raise NotFoundError(resource="FoodItem", resource_id=str(item_id))
        return item

    async def update(self, db: AsyncSession, data: FoodItemUpdate, user_id: UUID) -> FoodItem:
        """Partial update; fields not sent are left as they are."""
        item = await self.get(db, data.id, user_id)
        changes = data.model_dump(exclude_unset=True, include=set(UPDATABLE_FIELDS))
        for field, value in changes.items():
            if field == "percent_left" and value is None:
                continue
            setattr(item, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update food item %s: %s", data.id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to update food item") from e
        return item

    async def delete(self, db: AsyncSession, item_id: UUID, user_id: UUID) -> FoodItem:
        item = await self.get(db, item_id, user_id)
        try:
            await db.delete(item)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete food item %s: %s", item_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to delete food item") from e
        logger.info("FoodItem deleted: %s", item_id)
        return item

    async def find_all_by_user_id(self, db: AsyncSession, user_id: UUID) -> List[FoodItem]:
        result = await db.execute(
            select(FoodItem)
            .where(FoodItem.user_id == user_id)
            .order_by(FoodItem.created_at)
        )
        return list(result.scalars().all())

    async def get_associated_food_type(self, db: AsyncSession, item: FoodItem) -> Optional[FoodType]:
        return await food_type_service.find_by_id(db, item.type_id)


food_item_service = FoodItemService()
