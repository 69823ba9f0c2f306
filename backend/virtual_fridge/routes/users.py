"""
Virtual Fridge Backend — Profile Routes
=========================================
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.dependencies import get_current_user
from virtual_fridge.exceptions import NotFoundError
from virtual_fridge.models.user import User
from virtual_fridge.schemas.common import ErrorResponse, MessageResponse
from virtual_fridge.schemas.user import (
    HOBBIES,
    HobbiesData,
    HobbiesResponse,
    ProfileResponse,
    UpdateProfileRequest,
    UserData,
    UserOut,
)
from virtual_fridge.services.file_service import file_service
from virtual_fridge.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Users"])


@router.get("/user/profile", response_model=ProfileResponse, summary="Current user's profile")
async def get_profile(user: User = Depends(get_current_user)) -> ProfileResponse:
    return ProfileResponse(
        message="Profile fetched successfully",
        data=UserData(user=UserOut.model_validate(user)),
    )


@router.post(
    "/user/profile",
    response_model=ProfileResponse,
    responses={
        400: {"description": "Invalid profile data", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Update the current user's profile",
)
async def update_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    updated = await user_service.update_user(db, user.id, body)
    if updated is None:
        raise NotFoundError(resource="User", message="User not found")
    return ProfileResponse(
        message="User info updated successfully",
        data=UserData(user=UserOut.model_validate(updated)),
    )


@router.delete(
    "/user/profile",
    response_model=MessageResponse,
    summary="Delete the current user, their fridge and their images",
)
async def delete_profile(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    user_id = user.id
    await file_service.delete_all_user_images(user_id)
    await user_service.delete_user(db, user_id)
    return MessageResponse(message="User deleted successfully")


@router.get("/hobbies", response_model=HobbiesResponse, summary="Hobbies a profile may list")
async def list_hobbies(user: User = Depends(get_current_user)) -> HobbiesResponse:
    return HobbiesResponse(
        message="All hobbies fetched successfully",
        data=HobbiesData(hobbies=HOBBIES),
    )
