"""
Integration tests for health check endpoints.

Tests the /health and /api/health/* endpoints with actual FastAPI app.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from stockledger.api.main import app


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_basic_health_check(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "version": "1.0.0"}

    async def test_api_health_has_uptime(self, client: AsyncClient):
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["uptime_seconds"] >= 0
        assert data["database"] is None

    async def test_db_health(self, client: AsyncClient, stock_store):
        response = await client.get("/api/health/db")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"]["name"] == "sqlite"
        assert data["database"]["available"] is True
        assert data["database"]["latency_ms"] >= 0

    async def test_db_health_unavailable(self, client: AsyncClient):
        with patch(
            "stockledger.infrastructure.storage.sqlite.get_pool",
            AsyncMock(side_effect=OSError("disk gone")),
        ):
            response = await client.get("/api/health/db")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["database"]["available"] is False
        assert "disk gone" in data["database"]["error"]

    async def test_request_id_header(self, client: AsyncClient):
        response = await client.get("/health")

        assert "x-request-id" in {k.lower() for k in response.headers}
