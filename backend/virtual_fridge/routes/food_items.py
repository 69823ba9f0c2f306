"""
Virtual Fridge Backend — FoodItem Routes
==========================================
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.food import (
    FoodItemCreate,
    FoodItemData,
    FoodItemOut,
    FoodItemResponse,
    FoodItemUpdate,
)
from virtual_fridge.services.food_item_service import food_item_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/food-item",
    tags=["Food items"],
    responses={404: {"description": "FoodItem not found", "model": ErrorResponse}},
)


def _envelope(message: str, item: FoodItem) -> FoodItemResponse:
    return FoodItemResponse(
        message=message,
        data=FoodItemData(food_item=FoodItemOut.model_validate(item)),
    )


@router.post("", response_model=FoodItemResponse, summary="Add an item to the caller's fridge")
async def create_food_item(
    body: FoodItemCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodItemResponse:
    item = await food_item_service.create(
        db,
        user_id=user.id,
        type_id=body.type_id,
        percent_left=body.percent_left,
        expiration_date=body.expiration_date,
    )
    return _envelope("FoodItem created successfully", item)


@router.put("", response_model=FoodItemResponse, summary="Update expiration date or amount left")
async def update_food_item(
    body: FoodItemUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodItemResponse:
    item = await food_item_service.update(db, body, user.id)
    return _envelope("FoodItem updated successfully", item)


@router.get("/{item_id}", response_model=FoodItemResponse, summary="Get one food item")
async def get_food_item(
    item_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodItemResponse:
    item = await food_item_service.get(db, item_id, user.id)
    return _envelope("FoodItem fetched successfully", item)


@router.delete("/{item_id}", response_model=FoodItemResponse, summary="Remove a food item")
async def delete_food_item(
    item_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodItemResponse:
    item = await food_item_service.delete(db, item_id, user.id)
    return _envelope("FoodItem deleted successfully", item)
