"""
Virtual Fridge Backend — Auth Service Tests
=============================================

What:  Google token verification, session JWTs and the sign-up / sign-in /
       authenticate flows.
How:   Google's verifier is patched; users are stored in the per-test
       in-memory database.
"""

from datetime import timedelta
from unittest.mock import patch

import jwt
import pytest

from virtual_fridge.config import settings
from virtual_fridge.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
)
from virtual_fridge.services.auth_service import TEST_USER, AuthService
from virtual_fridge.services.user_service import user_service

GOOGLE_PAYLOAD = {
    "sub": "google-sub-999",
    "email": "New.Person@Example.com",
    "name": "New Person",
    "picture": "https://example.com/p.png",
}

VERIFY = "virtual_fridge.services.auth_service._verify_with_google"


class TestGoogleTokenVerification:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_valid_token(self):
        with patch(VERIFY, return_value=GOOGLE_PAYLOAD):
            info = await self.service.verify_google_token("id-token")
        assert info.google_id == "google-sub-999"
        assert info.profile_picture == "https://example.com/p.png"

    @pytest.mark.asyncio
    async def test_verifier_rejects_token(self):
        with patch(VERIFY, side_effect=ValueError("Wrong recipient")):
            with pytest.raises(AuthenticationError) as exc_info:
                await self.service.verify_google_token("id-token")
        assert exc_info.value.error == "Invalid Google token"

    @pytest.mark.asyncio
    async def test_payload_without_name(self):
        payload = {k: v for k, v in GOOGLE_PAYLOAD.items() if k != "name"}
        with patch(VERIFY, return_value=payload):
            with pytest.raises(AuthenticationError, match="Invalid Google token"):
                await self.service.verify_google_token("id-token")


class TestAccessTokens:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_round_trip(self, user):
        token = self.service.generate_access_token(user)
        assert self.service.decode_access_token(token) == user.id

    @pytest.mark.asyncio
    async def test_payload_carries_only_id_and_expiry(self, user):
        token = self.service.generate_access_token(user)
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        assert set(payload) == {"id", "exp"}

    @pytest.mark.asyncio
    async def test_expired_token(self, user):
        token = self.service.generate_access_token(user, expires_in=timedelta(seconds=-10))
        with pytest.raises(AuthenticationError) as exc_info:
            self.service.decode_access_token(token)
        assert exc_info.value.error == "Token expired"
        assert exc_info.value.message == "Please login again"

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError) as exc_info:
            self.service.decode_access_token("not-a-jwt")
        assert exc_info.value.error == "Invalid token"

    def test_token_signed_with_other_secret(self):
        token = jwt.encode({"id": "x"}, "another-secret", algorithm="HS256")
        with pytest.raises(AuthenticationError, match="malformed"):
            self.service.decode_access_token(token)

    def test_token_with_bad_id(self):
        token = jwt.encode({"id": "not-a-uuid"}, settings.jwt_secret, algorithm="HS256")
        with pytest.raises(AuthenticationError):
            self.service.decode_access_token(token)

    def test_missing_secret(self):
        with patch("virtual_fridge.services.auth_service.settings") as mock_settings:
            mock_settings.jwt_secret = ""
            with pytest.raises(ConfigurationError):
                self.service.decode_access_token("anything")


class TestLoginFlows:

    def setup_method(self):
        self.service = AuthService()

    @pytest.mark.asyncio
    async def test_sign_up_creates_user(self, db_session):
        with patch(VERIFY, return_value=GOOGLE_PAYLOAD):
            token, user = await self.service.sign_up(db_session, "id-token")

        assert user.email == "new.person@example.com"
        assert user.hobbies == []
        assert self.service.decode_access_token(token) == user.id

    @pytest.mark.asyncio
    async def test_sign_up_twice_conflicts(self, db_session):
        with patch(VERIFY, return_value=GOOGLE_PAYLOAD):
            await self.service.sign_up(db_session, "id-token")
            with pytest.raises(ConflictError, match="already exists"):
                await self.service.sign_up(db_session, "id-token")

    @pytest.mark.asyncio
    async def test_sign_in_unknown_user(self, db_session):
        with patch(VERIFY, return_value=GOOGLE_PAYLOAD):
            with pytest.raises(NotFoundError, match="please sign up first"):
                await self.service.sign_in(db_session, "id-token")

    @pytest.mark.asyncio
    async def test_sign_in_existing_user(self, db_session, user):
        payload = dict(GOOGLE_PAYLOAD, sub=user.google_id)
        with patch(VERIFY, return_value=payload):
            _, signed_in = await self.service.sign_in(db_session, "id-token")
        assert signed_in.id == user.id

    @pytest.mark.asyncio
    async def test_authenticate_creates_then_reuses(self, db_session):
        with patch(VERIFY, return_value=GOOGLE_PAYLOAD):
            _, first = await self.service.authenticate(db_session, "id-token")
            _, second = await self.service.authenticate(db_session, "id-token")
        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_test_login_reuses_fixed_account(self, db_session):
        _, first = await self.service.test_login(db_session)
        _, second = await self.service.test_login(db_session)
        assert first.id == second.id
        found = await user_service.find_by_google_id(db_session, TEST_USER.google_id)
        assert found is not None
