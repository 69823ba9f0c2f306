"""
Virtual Fridge Backend — FoodType SQLAlchemy Model
====================================================

What:  A kind of food (a product or a produce item), shared between users.
How:   Barcode scans create one row per barcode and reuse it for every
       later scan; produce photos create a fresh row per recognition.

Nutrients are stored per 100g as a JSON object of strings, keyed by
calories, energy_kj, protein, fat, ..., caffeine (see schemas.food).
"""

import uuid
from typing import Dict, List, Optional

from sqlalchemy import JSON, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from virtual_fridge.database import Base


class FoodType(Base):
    __tablename__ = "food_types"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    quantity: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    ingredients: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Raw label text from OpenFoodFacts, e.g. "05-2026"
    expiration_date: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    allergens: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    nutrients: Mapped[Dict[str, str]] = mapped_column(JSON, nullable=False, default=dict)
    shelf_life_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Not unique: manual entries may repeat a barcode
    barcode_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    __table_args__ = (
        Index("idx_food_types_barcode_id", "barcode_id"),
    )

    def __repr__(self) -> str:
        return f"<FoodType(id={self.id}, name='{self.name}', barcode='{self.barcode_id}')>"
