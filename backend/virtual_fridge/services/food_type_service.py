"""
Virtual Fridge Backend — FoodType Service
===========================================

CRUD for the shared food catalogue. Barcode scans reuse rows through
find_by_barcode(); the notification job resolves names in bulk through
find_by_ids().
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.exceptions import DatabaseError, NotFoundError
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.schemas.food import FoodTypeCreate, FoodTypeUpdate

logger = logging.getLogger(__name__)


def _column_values(payload: Dict[str, Any]) -> Dict[str, Any]:
    if payload.get("nutrients") is not None:
        payload["nutrients"] = {k: v for k, v in payload["nutrients"].items() if v is not None}
    return payload


class FoodTypeService:

    async def create(self, db: AsyncSession, data: FoodTypeCreate) -> FoodType:
        values = _column_values(data.model_dump(exclude_none=True))
        food_type = FoodType(**values)
        try:
            db.add(food_type)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to create food type: %s", str(e), exc_info=True)
            raise DatabaseError(message="Failed to create food type") from e
        logger.info("FoodType created: %s (%s)", food_type.id, food_type.name)
        return food_type

    async def find_by_id(self, db: AsyncSession, type_id: UUID) -> Optional[FoodType]:
        result = await db.execute(select(FoodType).where(FoodType.id == type_id))
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, type_id: UUID) -> FoodType:
        """find_by_id() that raises NotFoundError instead of returning None."""
        food_type = await self.find_by_id(db, type_id)
        if food_type is None:
            raise NotFoundError(resource="FoodType", resource_id=str(type_id))
        return food_type

    async def find_by_barcode(self, db: AsyncSession, barcode: str) -> Optional[FoodType]:
        result = await db.execute(
            select(FoodType).where(FoodType.barcode_id == barcode).limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_ids(self, db: AsyncSession, type_ids: Iterable[UUID]) -> List[FoodType]:
        ids = list(set(type_ids))
        if not ids:
            return []
        result = await db.execute(select(FoodType).where(FoodType.id.in_(ids)))
        return list(result.scalars().all())

    async def update(self, db: AsyncSession, type_id: UUID, data: FoodTypeUpdate) -> FoodType:
        food_type = await self.get(db, type_id)
        changes = _column_values(data.model_dump(exclude_unset=True, exclude={"id"}))
        for field, value in changes.items():
            setattr(food_type, field, value)
        try:
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to update food type %s: %s", type_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to update food type") from e
        return food_type

    async def delete(self, db: AsyncSession, type_id: UUID) -> FoodType:
        """Deletes and returns the row as it was."""
        food_type = await self.get(db, type_id)
        try:
            await db.delete(food_type)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete food type %s: %s", type_id, str(e), exc_info=True)
            raise DatabaseError(message="Failed to delete food type") from e
        logger.info("FoodType deleted: %s", type_id)
        return food_type


food_type_service = FoodTypeService()
