"""
Virtual Fridge Backend — Food Schemas
=======================================

What:  Request/response models for food types, food items and fridge views.

Nutrient keys stay snake_case on the wire (energy_kj, saturated_fat, ...):
they are data keys shared with the AI vision prompt, not attribute names,
so Nutrients does not use the camelCase alias generator.
"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from virtual_fridge.schemas.common import ApiModel

NUTRIENT_KEYS = (
    "calories",
    "energy_kj",
    "protein",
    "fat",
    "saturated_fat",
    "monounsaturated_fat",
    "polyunsaturated_fat",
    "trans_fat",
    "cholesterol",
    "carbs",
    "sugars",
    "fiber",
    "salt",
    "sodium",
    "calcium",
    "iron",
    "magnesium",
    "potassium",
    "zinc",
    "caffeine",
)


class Nutrients(BaseModel):
    """Per-100g nutrition facts. Numbers are accepted and stored as strings."""

    calories: Optional[str] = None
    energy_kj: Optional[str] = None
    protein: Optional[str] = None
    fat: Optional[str] = None
    saturated_fat: Optional[str] = None
    monounsaturated_fat: Optional[str] = None
    polyunsaturated_fat: Optional[str] = None
    trans_fat: Optional[str] = None
    cholesterol: Optional[str] = None
    carbs: Optional[str] = None
    sugars: Optional[str] = None
    fiber: Optional[str] = None
    salt: Optional[str] = None
    sodium: Optional[str] = None
    calcium: Optional[str] = None
    iron: Optional[str] = None
    magnesium: Optional[str] = None
    potassium: Optional[str] = None
    zinc: Optional[str] = None
    caffeine: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def stringify(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, bool):
            raise ValueError("nutrient values must be numbers or strings")
        if isinstance(v, (int, float)):
            return str(v)
        return v

    def to_storage(self) -> Dict[str, str]:
        """Only the nutrients that are actually known."""
        return self.model_dump(exclude_none=True)


def _coerce_calendar_date(v: Any) -> Any:
    """Accept ISO datetimes ("2026-05-14T00:00:00.000Z") as calendar days."""
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, str) and "T" in v:
        return datetime.fromisoformat(v.replace("Z", "+00:00")).date()
    return v


# ══════════════════════════════════════════════════════════════════════════
# Food types
# ══════════════════════════════════════════════════════════════════════════


class FoodTypeOut(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    name: Optional[str] = None
    brand: Optional[str] = None
    quantity: Optional[str] = None
    ingredients: Optional[str] = None
    image: Optional[str] = None
    expiration_date: Optional[str] = None
    allergens: List[str] = Field(default_factory=list)
    nutrients: Dict[str, str] = Field(default_factory=dict)
    shelf_life_days: Optional[int] = None
    barcode_id: Optional[str] = None


class FoodTypeCreate(ApiModel):
    name: str = Field(min_length=1)
    brand: Optional[str] = None
    quantity: Optional[str] = None
    ingredients: Optional[str] = None
    image: Optional[str] = None
    expiration_date: Optional[str] = None
    allergens: List[str] = Field(default_factory=list)
    nutrients: Optional[Nutrients] = None
    shelf_life_days: Optional[int] = None
    barcode_id: Optional[str] = None


class FoodTypeUpdate(ApiModel):
    """Partial update; `_id` may come in the body (PUT) or the path."""
    id: Optional[uuid.UUID] = Field(default=None, alias="_id")
    name: Optional[str] = Field(default=None, min_length=1)
    brand: Optional[str] = None
    quantity: Optional[str] = None
    ingredients: Optional[str] = None
    image: Optional[str] = None
    expiration_date: Optional[str] = None
    allergens: Optional[List[str]] = None
    nutrients: Optional[Nutrients] = None
    shelf_life_days: Optional[int] = None
    barcode_id: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Food items
# ══════════════════════════════════════════════════════════════════════════


class FoodItemOut(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    user_id: uuid.UUID
    type_id: uuid.UUID
    expiration_date: Optional[date] = None
    percent_left: int


class FoodItemCreate(ApiModel):
    type_id: uuid.UUID
    expiration_date: Optional[date] = None
    percent_left: int = Field(ge=0, le=100)

    @field_validator("expiration_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)


class FoodItemUpdate(ApiModel):
    """userId and typeId are fixed at creation and cannot be changed."""
    id: uuid.UUID = Field(alias="_id")
    expiration_date: Optional[date] = None
    percent_left: Optional[int] = Field(default=None, ge=0, le=100)

    @field_validator("expiration_date", mode="before")
    @classmethod
    def coerce_date(cls, v: Any) -> Any:
        return _coerce_calendar_date(v)


class FoodItemData(ApiModel):
    food_item: FoodItemOut


class FoodItemResponse(ApiModel):
    message: str
    data: FoodItemData


# ══════════════════════════════════════════════════════════════════════════
# Fridge views
# ══════════════════════════════════════════════════════════════════════════


class FridgeItem(ApiModel):
    food_item: FoodItemOut
    food_type: Optional[FoodTypeOut] = None


class FridgeItemsData(ApiModel):
    fridge_items: List[FridgeItem]


class FridgeItemsResponse(ApiModel):
    message: str
    data: FridgeItemsData


class FridgeItemData(ApiModel):
    fridge_item: FridgeItem


class FridgeItemResponse(ApiModel):
    message: str
    data: FridgeItemData


class BarcodeRequest(ApiModel):
    barcode: str = Field(min_length=1)
