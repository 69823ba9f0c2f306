"""
Virtual Fridge Backend — Authentication Service
=================================================

What:  Exchanges a Google ID token for a session JWT.
How:   google-auth verifies the ID token against GOOGLE_CLIENT_ID; PyJWT
       signs an HS256 session token carrying only the user's id.

Token lifecycle:
    device ──idToken──▶ /api/auth/* ──verify──▶ Google certs
                                     └─▶ {token (JWT, 19h), user}
    device ──Authorization: Bearer <JWT>──▶ every protected route
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
from uuid import UUID

import jwt
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy.ext.asyncio import AsyncSession

from virtual_fridge.config import settings
from virtual_fridge.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
)
from virtual_fridge.models.user import User
from virtual_fridge.schemas.user import GoogleUserInfo
from virtual_fridge.services.user_service import user_service

logger = logging.getLogger(__name__)

TEST_USER = GoogleUserInfo(
    google_id="test-google-id-e2e-testing",
    email="test-user@virtualfridge.test",
    name="Test User",
)
TEST_TOKEN_HOURS = 24


def _verify_with_google(token: str) -> Dict[str, Any]:
    # Blocking: fetches Google's signing certs over HTTP
    return google_id_token.verify_oauth2_token(
        token, google_requests.Request(), audience=settings.google_client_id
    )


class AuthService:
    """
    Responsibilities:
        - verify_google_token(): Google ID token → GoogleUserInfo
        - generate_access_token() / decode_access_token(): session JWTs
        - sign_up / sign_in / authenticate: the three login entry points
    """

    async def verify_google_token(self, token: str) -> GoogleUserInfo:
        try:
            payload = await asyncio.to_thread(_verify_with_google, token)
        except Exception as e:
            logger.warning("Google token verification failed: %s", str(e))
            raise AuthenticationError(
                message="Invalid Google token", error="Invalid Google token"
            ) from e

        if not payload or not payload.get("email") or not payload.get("name"):
            raise AuthenticationError(
                message="Invalid Google token", error="Invalid Google token"
            )

        return GoogleUserInfo(
            google_id=payload["sub"],
            email=payload["email"],
            name=payload["name"],
            profile_picture=payload.get("picture"),
        )

    def _require_secret(self) -> str:
        if not settings.jwt_secret:
            logger.error("JWT_SECRET not configured")
            raise ConfigurationError(message="JWT_SECRET is not configured")
        return settings.jwt_secret

    def generate_access_token(self, user: User, expires_in: Optional[timedelta] = None) -> str:
        secret = self._require_secret()
        expires_at = datetime.now(timezone.utc) + (
            expires_in or timedelta(hours=settings.jwt_expiry_hours)
        )
        payload = {"id": str(user.id), "exp": expires_at}
        return jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)

    def decode_access_token(self, token: str) -> UUID:
        """
        Returns the user id inside a session JWT.

        Raises:
            ConfigurationError:  no JWT secret configured
            AuthenticationError: expired ("Token expired") or unreadable ("Invalid token")
        """
        secret = self._require_secret()
        try:
            payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError(
                message="Please login again", error="Token expired"
            ) from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(
                message="Token is malformed or expired", error="Invalid token"
            ) from e

        try:
            return UUID(str(payload["id"]))
        except (KeyError, ValueError) as e:
            raise AuthenticationError(
                message="Token is malformed or expired", error="Invalid token"
            ) from e

    async def sign_up(self, db: AsyncSession, token: str) -> Tuple[str, User]:
        info = await self.verify_google_token(token)
        if await user_service.find_by_google_id(db, info.google_id) is not None:
            raise ConflictError(message="User already exists, please sign in instead.")
        user = await user_service.create_user(db, info)
        return self.generate_access_token(user), user

    async def sign_in(self, db: AsyncSession, token: str) -> Tuple[str, User]:
        info = await self.verify_google_token(token)
        user = await user_service.find_by_google_id(db, info.google_id)
        if user is None:
            raise NotFoundError(resource="User", message="User not found, please sign up first.")
        return self.generate_access_token(user), user

    async def authenticate(self, db: AsyncSession, token: str) -> Tuple[str, User]:
        """Sign in, creating the account on first use."""
        info = await self.verify_google_token(token)
        user = await user_service.find_by_google_id(db, info.google_id)
        if user is None:
            user = await user_service.create_user(db, info)
        return self.generate_access_token(user), user

    async def test_login(self, db: AsyncSession) -> Tuple[str, User]:
        """Fixed end-to-end test account; only reachable when ENABLE_TEST_AUTH is set."""
        user = await user_service.find_by_google_id(db, TEST_USER.google_id)
        if user is None:
            user = await user_service.create_user(db, TEST_USER)
        logger.warning("Issued test-user session for %s", user.email)
        token = self.generate_access_token(user, expires_in=timedelta(hours=TEST_TOKEN_HOURS))
        return token, user


auth_service = AuthService()
