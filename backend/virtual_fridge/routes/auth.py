"""
Virtual Fridge Backend — Authentication Routes
================================================

All three entry points take {idToken} (a Google ID token from the device)
and answer with a session JWT plus the user. /test-user exists only when
ENABLE_TEST_AUTH is set and is registered by create_app().
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.database import get_db_session
from virtual_fridge.schemas.common import ErrorResponse
from virtual_fridge.schemas.user import AuthRequest, AuthResponse, AuthResult, UserOut
from virtual_fridge.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
test_router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _result(token: str, user) -> AuthResult:
    return AuthResult(token=token, user=UserOut.model_validate(user))


@router.post(
    "/signup",
    status_code=201,
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid Google token", "model": ErrorResponse},
        409: {"description": "Account already exists", "model": ErrorResponse},
    },
    summary="Create an account from a Google ID token",
)
async def sign_up(body: AuthRequest, db: AsyncSession = Depends(get_db_session)) -> AuthResponse:
    token, user = await auth_service.sign_up(db, body.id_token)
    return AuthResponse(message="User signed up successfully", data=_result(token, user))


@router.post(
    "/signin",
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid Google token", "model": ErrorResponse},
        404: {"description": "No account for this Google user", "model": ErrorResponse},
    },
    summary="Sign in with a Google ID token",
)
async def sign_in(body: AuthRequest, db: AsyncSession = Depends(get_db_session)) -> AuthResponse:
    token, user = await auth_service.sign_in(db, body.id_token)
    return AuthResponse(message="User signed in successfully", data=_result(token, user))


@router.post(
    "/google",
    response_model=AuthResult,
    summary="Sign in, creating the account on first use",
)
async def google_auth(body: AuthRequest, db: AsyncSession = Depends(get_db_session)) -> AuthResult:
    token, user = await auth_service.authenticate(db, body.id_token)
    return _result(token, user)


@test_router.post(
    "/test-user",
    response_model=AuthResponse,
    summary="Session for the fixed end-to-end test account",
)
async def test_user_login(db: AsyncSession = Depends(get_db_session)) -> AuthResponse:
    token, user = await auth_service.test_login(db)
    return AuthResponse(message="Test user authenticated", data=_result(token, user))
