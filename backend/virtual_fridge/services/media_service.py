"""
Virtual Fridge Backend — Media Service
========================================

What:  Orchestrates image uploads and the produce-vision workflow.

Vision Flow (POST /api/media/vision):
    ┌──────────┐    ┌───────────┐    ┌────────────┐    ┌──────────────────┐
    │  Upload  │───▶│  Validate │───▶│  Gemini    │───▶│ FoodType +       │
    │  (Route) │    │  & Store  │    │  (vision)  │    │ FoodItem (DB)    │
    └──────────┘    └───────────┘    └────────────┘    └──────────────────┘

    - AI unreachable       → 500 "AI service unavailable"
    - Not a fruit/vegetable → 400 "Item detected must be a fruit or vegetable"

The stored photo is kept in both failure cases; the client may reuse it
as a manual entry image.
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.exceptions import (
    CircuitBreakerOpenError,
    ConfigurationError,
    LLMServiceError,
    ValidationError,
)
from virtual_fridge.models.food_item import FoodItem
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.schemas.food import FoodTypeCreate, Nutrients
from virtual_fridge.services.file_service import FileService, file_service
from virtual_fridge.services.food_item_service import food_item_service
from virtual_fridge.services.food_type_service import food_type_service
from virtual_fridge.services.gemini_service import gemini_service
from virtual_fridge.services.llm_base import AIService

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCE_NAME = "Unknown produce"


class MediaService:

    def __init__(
        self,
        files: Optional[FileService] = None,
        ai_service: Optional[AIService] = None,
    ):
        self.files = files or file_service
        self.ai_service = ai_service or gemini_service

    async def upload_image(
        self,
        user_id: UUID,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> str:
        """Stores the image and returns its public path (uploads/images/...)."""
        _, public_path = await self.files.validate_and_store(
            user_id, filename or "", content, content_length
        )
        return public_path

    async def add_produce_from_image(
        self,
        db: AsyncSession,
        user_id: UUID,
        filename: Optional[str],
        content: bytes,
        content_length: Optional[int] = None,
    ) -> Tuple[FoodItem, FoodType]:
        absolute_path, public_path = await self.files.validate_and_store(
            user_id, filename or "", content, content_length
        )

        try:
            analysis = await self.ai_service.analyze_produce(absolute_path)
        except (LLMServiceError, CircuitBreakerOpenError, ConfigurationError) as e:
            logger.error("Produce analysis failed for %s: %s", public_path, e.message)
            raise LLMServiceError(
                message="AI service unavailable",
                status_code=500,
                context={"image": public_path},
            ) from e

        if not analysis.is_produce:
            logger.info("Image %s is not a single fruit or vegetable", public_path)
            raise ValidationError(
                message="Item detected must be a fruit or vegetable",
                field="media",
            )

        nutrients = (
            Nutrients.model_validate(analysis.nutrients) if analysis.nutrients else None
        )
        food_type = await food_type_service.create(
            db,
            FoodTypeCreate(
                name=analysis.name or UNKNOWN_PRODUCE_NAME,
                image=public_path,
                nutrients=nutrients,
            ),
        )
        food_item = await food_item_service.create(
            db,
            user_id=user_id,
            type_id=food_type.id,
            percent_left=100,
            expiration_date=None,
        )
        logger.info(
            "Produce '%s' (%s) added for user %s",
            food_type.name,
            analysis.category or "unknown",
            user_id,
        )
        return food_item, food_type


media_service = MediaService()
