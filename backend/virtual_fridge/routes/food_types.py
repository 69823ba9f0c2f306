"""
Virtual Fridge Backend — FoodType Routes
==========================================

Unlike the rest of the API these return the bare FoodType object, without
the {message, data} envelope; the client's catalogue screens expect that.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.exceptions import NotFoundError, ValidationError
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.food import FoodTypeCreate, FoodTypeOut, FoodTypeUpdate
from virtual_fridge.services.food_type_service import food_type_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/food-type",
    tags=["Food types"],
    responses={404: {"description": "FoodType not found", "model": ErrorResponse}},
)


@router.post("", status_code=201, response_model=FoodTypeOut, summary="Create a food type")
async def create_food_type(
    body: FoodTypeCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    return FoodTypeOut.model_validate(await food_type_service.create(db, body))


@router.put("", response_model=FoodTypeOut, summary="Update a food type (id in the body)")
async def update_food_type_from_body(
    body: FoodTypeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    if body.id is None:
        raise ValidationError(message="FoodType ID is required", field="_id")
    return FoodTypeOut.model_validate(await food_type_service.update(db, body.id, body))


@router.put("/{type_id}", response_model=FoodTypeOut, summary="Update a food type")
async def update_food_type(
    type_id: UUID,
    body: FoodTypeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    return FoodTypeOut.model_validate(await food_type_service.update(db, type_id, body))


@router.get("/barcode/{barcode}", response_model=FoodTypeOut, summary="Find a food type by barcode")
async def get_food_type_by_barcode(
    barcode: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    food_type = await food_type_service.find_by_barcode(db, barcode)
    if food_type is None:
        raise NotFoundError(
            resource="FoodType",
            message=f"FoodType with barcode {barcode} not found.",
        )
    return FoodTypeOut.model_validate(food_type)


@router.get("/{type_id}", response_model=FoodTypeOut, summary="Get a food type")
async def get_food_type(
    type_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    return FoodTypeOut.model_validate(await food_type_service.get(db, type_id))


@router.delete("/{type_id}", response_model=FoodTypeOut, summary="Delete a food type")
async def delete_food_type(
    type_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FoodTypeOut:
    return FoodTypeOut.model_validate(await food_type_service.delete(db, type_id))
