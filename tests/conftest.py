"""Global pytest fixtures for the Mood Garden leaderboard.

- Fixed clock and an in-memory stat store for ranking tests
- Mock async session for SqlStatStore tests
- HTTP client bound to the ASGI app with the store dependency overridden
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tests.factories import InMemoryStatStore

FIXED_NOW = datetime(2024, 3, 15, 12, 30, tzinfo=timezone.utc)


# ===========================================
# RANKING FIXTURES
# ===========================================


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def stat_store() -> InMemoryStatStore:
    return InMemoryStatStore()


@pytest.fixture
def leaderboard_service(stat_store, fixed_now):
    from moodgarden.services.leaderboard_service import LeaderboardService

    return LeaderboardService(stat_store, clock=lambda: fixed_now)


# ===========================================
# DATABASE SESSION FIXTURES
# ===========================================


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncMock, None]:
    """Mock async database session for unit tests."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    yield session


# ===========================================
# HTTP CLIENT FIXTURES
# ===========================================


@pytest_asyncio.fixture
async def async_client(stat_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app; the stat store is the in-memory double.

    ASGITransport does not run the lifespan, so Redis is never connected
    and the rate limiter lets every request through.
    """
    from moodgarden.main import app
    from moodgarden.routes.leaderboard import get_stat_store

    app.dependency_overrides[get_stat_store] = lambda: stat_store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
