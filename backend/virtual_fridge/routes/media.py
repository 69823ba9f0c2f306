"""
Virtual Fridge Backend — Media Routes
=======================================

Both upload routes take a multipart field named "media" (PNG, JPEG or
WebP, max 10MB). Stored images are served back under /uploads/.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.exceptions import ValidationError
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.food import (
    FoodItemOut,
    FoodTypeOut,
    FridgeItem,
    FridgeItemData,
    FridgeItemResponse,
)
from virtual_fridge.schemas.media import UploadData, UploadResponse
from virtual_fridge.services.file_service import file_service
from virtual_fridge.services.media_service import media_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/media", tags=["Media"])
files_router = APIRouter(tags=["Media"])


async def _read_upload(media: Optional[UploadFile]) -> bytes:
    if media is None:
        raise ValidationError(message="No file uploaded", field="media")
    try:
        return await media.read()
    finally:
        await media.close()


@router.post(
    "/upload",
    response_model=UploadResponse,
    responses={400: {"description": "Missing or invalid image", "model": ErrorResponse}},
    summary="Upload an image and get its public path",
)
async def upload_image(
    media: Optional[UploadFile] = File(default=None, description="Image file"),
    user: User = Depends(get_current_user),
) -> UploadResponse:
    content = await _read_upload(media)
    logger.info("Upload from user %s: %d bytes", user.id, len(content))
    image = await media_service.upload_image(user.id, media.filename, content, media.size)
    return UploadResponse(message="Image uploaded successfully", data=UploadData(image=image))


@router.post(
    "/vision",
    response_model=FridgeItemResponse,
    responses={
        400: {"description": "Not a fruit or vegetable", "model": ErrorResponse},
        500: {"description": "AI service unavailable", "model": ErrorResponse},
    },
    summary="Recognise a photographed fruit or vegetable and add it to the fridge",
)
async def analyze_produce(
    media: Optional[UploadFile] = File(default=None, description="Photo of one fruit or vegetable"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> FridgeItemResponse:
    content = await _read_upload(media)
    food_item, food_type = await media_service.add_produce_from_image(
        db, user.id, media.filename, content, media.size
    )
    return FridgeItemResponse(
        message="Produce item added to fridge",
        data=FridgeItemData(fridge_item=FridgeItem(
            food_item=FoodItemOut.model_validate(food_item),
            food_type=FoodTypeOut.model_validate(food_type),
        )),
    )


@files_router.get(
    "/uploads/{file_path:path}",
    responses={
        200: {"description": "Image file"},
        400: {"description": "Path outside the upload directory", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve an uploaded image",
)
async def serve_upload(file_path: str) -> FileResponse:
    path = file_service.resolve_public_path(file_path)
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
