"""
Virtual Fridge Backend — Fridge Routes
========================================
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.food import (
    BarcodeRequest,
    FoodItemOut,
    FoodTypeOut,
    FridgeItem,
    FridgeItemData,
    FridgeItemResponse,
    FridgeItemsData,
    FridgeItemsResponse,
)
from virtual_fridge.services.fridge_service import fridge_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/fridge", tags=["Fridge"])


@router.get("", response_model=FridgeItemsResponse, summary="Everything in the caller's fridge")
async def list_fridge(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FridgeItemsResponse:
    rows = await fridge_service.list_fridge(db, user.id)
    items = [
        FridgeItem(
            food_item=FoodItemOut.model_validate(item),
            food_type=FoodTypeOut.model_validate(food_type) if food_type else None,
        )
        for item, food_type in rows
    ]
    return FridgeItemsResponse(
        message="Fridge items fetched successfully",
        data=FridgeItemsData(fridge_items=items),
    )


@router.post(
    "/barcode",
    response_model=FridgeItemResponse,
    responses={
        404: {"description": "Unknown product", "model": ErrorResponse},
        500: {"description": "OpenFoodFacts lookup failed", "model": ErrorResponse},
    },
    summary="Add an item by scanning its barcode",
)
async def add_by_barcode(
    body: BarcodeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FridgeItemResponse:
    food_item, food_type = await fridge_service.create_from_barcode(db, user.id, body.barcode)
    return FridgeItemResponse(
        message="Successfully created item from barcode",
        data=FridgeItemData(fridge_item=FridgeItem(
            food_item=FoodItemOut.model_validate(food_item),
            food_type=FoodTypeOut.model_validate(food_type),
        )),
    )
