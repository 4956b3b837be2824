"""Tests for health check endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from seo_engine.modules.health import router as health_router


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient) -> None:
    """Test basic health check."""
    response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "version" in data


@pytest.mark.asyncio
async def test_readiness_endpoint(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    """Ready when the database answers and storage exists, even without Redis."""
    monkeypatch.setattr(health_router, "check_db_connection", AsyncMock(return_value=True))
    monkeypatch.setattr(health_router, "check_redis_connection", AsyncMock(return_value=False))
    monkeypatch.setattr(health_router.settings, "storage_root", str(tmp_path))

    response = await client.get("/health/ready")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["checks"] == {"database": True, "redis": False, "storage": True}


@pytest.mark.asyncio
async def test_readiness_degraded_without_database(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(health_router, "check_db_connection", AsyncMock(return_value=False))
    monkeypatch.setattr(health_router, "check_redis_connection", AsyncMock(return_value=True))

    response = await client.get("/health/ready")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["checks"]["database"] is False
