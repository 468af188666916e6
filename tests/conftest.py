"""
Test Configuration and Fixtures

Provides async test client, database fixtures, a fake workforce provider
and authentication helpers.
"""

import os

# Settings are read at import time by the backend modules
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-session-tokens")
os.environ.setdefault("EXTERNAL_API_BASE_URL", "https://workforce.test/api")

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from backend.db.session import get_db
from backend.main import app
from backend.models.base import Base
from backend.services.auth import create_session_token
from backend.services.workforce import get_workforce
from integrations.base import WorkerDirectory
from tests.factories import (
    FakeWorkforce,
    make_directory,
    make_external_token,
    make_hours_summary,
)

test_engine = create_async_engine(
    "sqlite+aiosqlite://",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a clean database session for each test."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def worker_directory() -> WorkerDirectory:
    return make_directory()


@pytest.fixture
def fake_workforce(worker_directory: WorkerDirectory) -> FakeWorkforce:
    return FakeWorkforce(directory=worker_directory, summary=make_hours_summary())


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    fake_workforce: FakeWorkforce,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async test client with dependency overrides."""

    async def override_get_db():
        yield db_session

    async def override_get_workforce():
        yield fake_workforce

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_workforce] = override_get_workforce

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def external_token() -> str:
    """External JWT of an operator linked to worker w-1 and company c-1."""
    return make_external_token()


@pytest.fixture
def auth_headers(external_token: str) -> dict[str, str]:
    """Session token auth headers for the test operator."""
    token, _ = create_session_token(external_token)
    return {"Authorization": f"Bearer {token}"}
