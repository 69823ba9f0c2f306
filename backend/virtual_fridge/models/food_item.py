"""
Virtual Fridge Backend — FoodItem SQLAlchemy Model
====================================================

What:  One physical item in one user's fridge.
How:   Points at a FoodType for its name and nutrition; carries its own
       expiration date (calendar day) and how much of it is left.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from virtual_fridge.database import Base


class FoodItem(Base):
    """
    Query Patterns:
        - Fridge listing / expiry check: WHERE user_id = :id
    """

    __tablename__ = "food_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("food_types.id", ondelete="CASCADE"), nullable=False
    )

    # Day granularity: expiry checks compare calendar days only
    expiration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    percent_left: Mapped[int] = mapped_column(Integer, nullable=False, default=100)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "percent_left >= 0 AND percent_left <= 100",
            name="ck_food_items_percent_left",
        ),
        Index("idx_food_items_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<FoodItem(id={self.id}, type_id={self.type_id}, "
            f"expires='{self.expiration_date}', left={self.percent_left}%)>"
        )
