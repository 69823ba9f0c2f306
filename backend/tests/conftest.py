"""
Virtual Fridge Backend — Test Configuration (conftest.py)
==========================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before anything from virtual_fridge is
       imported, so the settings singleton sees the test values. Each test
       gets a fresh in-memory SQLite database (aiosqlite + StaticPool).

Fixture Hierarchy:
    Function-scoped:
    ├── mock_db_session: AsyncMock session for pure unit tests
    ├── db_engine / db_session: real in-memory database with all tables
    ├── user / auth_headers: a stored user and a Bearer header for it
    ├── food_type: a stored FoodType
    ├── temp_storage / sample_image_bytes: upload helpers
    └── test_client: HTTPX AsyncClient bound to the app via ASGITransport
"""

import os
import tempfile

# Must run before any virtual_fridge import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["GEMINI_API_KEY"] = "test-key-not-real"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="virtual_fridge_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RETRY_MAX_ATTEMPTS"] = "1"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["FIREBASE_SERVICE_ACCOUNT"] = ""
os.environ["ENABLE_TEST_AUTH"] = "true"

from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from virtual_fridge import models  # noqa: F401
from virtual_fridge.database import Base, get_db_session
from virtual_fridge.models.food_type import FoodType
from virtual_fridge.models.user import User
from virtual_fridge.services.auth_service import auth_service


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.delete = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.commit()


@pytest_asyncio.fixture
async def user(db_session) -> User:
    """A signed-up user with an FCM token and no preferences."""
    record = User(
        google_id="google-sub-123",
        email="Jane.Doe@Example.com",
        name="Jane Doe",
        hobbies=[],
        fcm_token="fcm-token-abcdefghijklmnopqrstuvwxyz",
    )
    db_session.add(record)
    await db_session.flush()
    await db_session.commit()
    return record


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {auth_service.generate_access_token(user)}"}


@pytest_asyncio.fixture
async def food_type(db_session) -> FoodType:
    record = FoodType(
        name="Greek Yogurt",
        brand="Dairy Co",
        allergens=["milk"],
        nutrients={"calories": "97", "protein": "9"},
        shelf_life_days=14,
        barcode_id="5000112637922",
    )
    db_session.add(record)
    await db_session.flush()
    await db_session.commit()
    return record


# ══════════════════════════════════════════════════════════════════════════
# File Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    The smallest byte string libmagic reports as image/jpeg.

    SOI marker + JFIF header + EOI marker; not a viewable photo.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the app in-process.

    get_db_session is overridden to use the per-test in-memory database,
    committing on success like the real dependency.
    """
    from virtual_fridge.main import app

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
