"""
Virtual Fridge Backend — FoodItem Service Tests
=================================================

What:  Owner-scoped reads, partial updates and deletes, and the lookup of
       an item's food type.
"""

import uuid
from datetime import date

import pytest

from virtual_fridge.exceptions import NotFoundError
from virtual_fridge.schemas.food import FoodItemUpdate
from virtual_fridge.services.food_item_service import FoodItemService


class TestFoodItemService:

    def setup_method(self):
        self.service = FoodItemService()

    @pytest.mark.asyncio
    async def test_get_own_item(self, db_session, user, food_type):
        item = await self.service.create(db_session, user.id, food_type.id, percent_left=70)

        fetched = await self.service.get(db_session, item.id, user.id)

        assert fetched is item
        assert fetched.percent_left == 70

    @pytest.mark.asyncio
    async def test_other_users_item_is_not_found(self, db_session, user, food_type):
        item = await self.service.create(db_session, user.id, food_type.id)
        stranger = uuid.uuid4()

        with pytest.raises(NotFoundError, match=f"FoodItem with ID {item.id} not found."):
            await self.service.get(db_session, item.id, stranger)
        with pytest.raises(NotFoundError):
            await self.service.update(
                db_session, FoodItemUpdate(id=item.id, percent_left=0), stranger
            )
        with pytest.raises(NotFoundError):
            await self.service.delete(db_session, item.id, stranger)

        assert await self.service.find_by_id(db_session, item.id) is item
        assert item.percent_left == 100

    @pytest.mark.asyncio
    async def test_update_keeps_unsent_fields(self, db_session, user, food_type):
        item = await self.service.create(
            db_session, user.id, food_type.id, expiration_date=date(2026, 6, 1)
        )

        updated = await self.service.update(
            db_session, FoodItemUpdate(id=item.id, percent_left=40), user.id
        )

        assert updated.percent_left == 40
        assert updated.expiration_date == date(2026, 6, 1)

    @pytest.mark.asyncio
    async def test_delete_own_item(self, db_session, user, food_type):
        item = await self.service.create(db_session, user.id, food_type.id)

        await self.service.delete(db_session, item.id, user.id)

        assert await self.service.find_all_by_user_id(db_session, user.id) == []

    @pytest.mark.asyncio
    async def test_get_associated_food_type(self, db_session, user, food_type):
        item = await self.service.create(db_session, user.id, food_type.id)

        associated = await self.service.get_associated_food_type(db_session, item)

        assert associated.id == food_type.id
        assert associated.name == "Greek Yogurt"
