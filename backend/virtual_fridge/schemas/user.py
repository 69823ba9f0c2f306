"""
User, profile and authentication schemas.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from virtual_fridge.schemas.common import ApiModel

# Hobbies a profile may list; anything else is rejected on update
HOBBIES: List[str] = [
    "Reading",
    "Writing",
    "Photography",
    "Cooking",
    "Gardening",
    "Painting",
    "Drawing",
    "Pottery",
    "Running",
    "Yoga",
    "Chess",
    "Video Games",
    "Travel",
    "Coding",
    "Blogging",
    "Surfing",
    "Skiing",
    "Singing",
]


class DietaryPreferences(ApiModel):
    vegetarian: Optional[bool] = None
    vegan: Optional[bool] = None
    halal: Optional[bool] = None
    keto: Optional[bool] = None


class NotificationPreferences(ApiModel):
    enable_notifications: bool
    expiry_threshold_days: Optional[int] = Field(default=None, ge=0)
    # Minutes after midnight the client prefers reminders at
    notification_time: Optional[int] = Field(default=None, ge=0)


class GoogleUserInfo(ApiModel):
    """Identity extracted from a verified Google ID token."""
    google_id: str = Field(min_length=1)
    email: str = Field(min_length=3)
    name: str = Field(min_length=1)
    profile_picture: Optional[str] = None


class UserOut(ApiModel):
    id: uuid.UUID = Field(alias="_id")
    google_id: str
    email: str
    name: str
    profile_picture: Optional[str] = None
    bio: Optional[str] = None
    hobbies: List[str] = Field(default_factory=list)
    dietary_preferences: Optional[DietaryPreferences] = None
    notification_preferences: Optional[NotificationPreferences] = None
    fcm_token: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UpdateProfileRequest(ApiModel):
    """
    Body of POST /api/user/profile. Every field is optional; only the
    fields present in the request are written.
    """
    name: Optional[str] = Field(default=None, min_length=1)
    bio: Optional[str] = Field(default=None, max_length=500)
    profile_picture: Optional[str] = Field(default=None, min_length=1)
    hobbies: Optional[List[str]] = None
    dietary_preferences: Optional[DietaryPreferences] = None
    notification_preferences: Optional[NotificationPreferences] = None
    fcm_token: Optional[str] = None

    @field_validator("name", "hobbies")
    @classmethod
    def _not_null(cls, value):
        # May be omitted, but not cleared
        if value is None:
            raise ValueError("must not be null")
        return value


class UserData(ApiModel):
    user: UserOut


class ProfileResponse(ApiModel):
    message: str
    data: Optional[UserData] = None


class HobbiesData(ApiModel):
    hobbies: List[str]


class HobbiesResponse(ApiModel):
    message: str
    data: HobbiesData


# ── Auth ──────────────────────────────────────────────────────────────────

class AuthRequest(ApiModel):
    id_token: str = Field(min_length=1, description="Google ID token from the device")


class AuthResult(ApiModel):
    token: str
    user: UserOut


class AuthResponse(ApiModel):
    message: str
    data: AuthResult
