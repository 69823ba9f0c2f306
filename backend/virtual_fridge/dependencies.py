"""
Virtual Fridge Backend — Shared Route Dependencies
====================================================

get_current_user resolves "Authorization: Bearer <JWT>" to a User row.
Every failure is an AuthenticationError (401) except a missing JWT secret,
which is a server problem (ConfigurationError, 500).
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.exceptions import AuthenticationError
from virtual_fridge.models.user import User
from virtual_fridge.services.auth_service import auth_service
from virtual_fridge.services.user_service import user_service

logger = logging.getLogger(__name__)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        raise AuthenticationError(message="No token provided", error="Access denied")

    token = header[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError(message="No token provided", error="Access denied")

    user_id = auth_service.decode_access_token(token)
    user = await user_service.get_user(db, user_id)
    if user is None:
        logger.info("Valid token for deleted user %s", user_id)
        raise AuthenticationError(
            message="Token is valid but user no longer exists", error="User not found"
        )

    request.state.user_id = str(user.id)
    return user
