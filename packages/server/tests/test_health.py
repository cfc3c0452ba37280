"""
Health check endpoint tests.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import RedisError
from sqlalchemy.exc import OperationalError


class FakeDatabase:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.disposed = False

    @asynccontextmanager
    async def session(self):
        if self.error is not None:
            raise self.error
        yield AsyncMock()

    async def dispose(self):
        self.disposed = True


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(app, client: AsyncClient):
    """Ready endpoint reports ready when database and Redis answer."""
    app.state.database = FakeDatabase()
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready", "database": "ok", "redis": "ok"}


@pytest.mark.asyncio
async def test_ready_check_database_down(app, client: AsyncClient):
    app.state.database = FakeDatabase(OperationalError("SELECT 1", {}, Exception("refused")))
    response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json()["database"] == "unavailable"


@pytest.mark.asyncio
async def test_ready_check_redis_down(app, client: AsyncClient, mock_redis):
    app.state.database = FakeDatabase()
    mock_redis.ping.side_effect = RedisError("refused")
    response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json()["redis"] == "unavailable"


@pytest.mark.asyncio
async def test_probes_are_not_gated(client: AsyncClient):
    """Anonymous probes are answered, not redirected to /login."""
    response = await client.get("/health", follow_redirects=False)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_api_root(client: AsyncClient):
    """API v1 root should return version and endpoint list."""
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/threads" in data["endpoints"]
