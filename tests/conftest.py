"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from seo_engine.core.cache import MemoryCacheStore, get_cache_store
from seo_engine.core.database import get_db
from seo_engine.core.dependencies import get_request_tenant
from seo_engine.core.locks import LocalLockManager
from seo_engine.core.storage import MemoryFileStore, get_file_store
from seo_engine.main import create_app
from seo_engine.modules.tenants.models import Tenant
from tests.fixtures.factories import TenantFactory

# ============================================================================
# Test Data Constants
# ============================================================================

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=UTC)


# ============================================================================
# Ports
# ============================================================================


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock(now: datetime) -> Callable[[], datetime]:
    """Clock frozen at FIXED_NOW."""
    return lambda: now


@pytest.fixture
def mock_db() -> AsyncMock:
    """Create mock database session."""
    db = AsyncMock()
    db.add = Mock()
    db.delete = AsyncMock()
    return db


@pytest.fixture
def memory_store(clock: Callable[[], datetime]) -> MemoryFileStore:
    return MemoryFileStore(clock=clock)


@pytest.fixture
def memory_cache() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def locks() -> LocalLockManager:
    return LocalLockManager()


@pytest.fixture
def tenant() -> Tenant:
    """Tenant 'omega' served at omega.localhost."""
    return TenantFactory(subdomain="omega", name="Omega Veículos")


# ============================================================================
# Application
# ============================================================================


@pytest_asyncio.fixture(scope="function")
async def app(
    mock_db: AsyncMock,
    memory_store: MemoryFileStore,
    memory_cache: MemoryCacheStore,
    tenant: Tenant,
) -> FastAPI:
    """Create test FastAPI application with in-memory ports."""
    application = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncMock, None]:
        yield mock_db

    async def override_get_request_tenant() -> Tenant:
        return tenant

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_file_store] = lambda: memory_store
    application.dependency_overrides[get_cache_store] = lambda: memory_cache
    application.dependency_overrides[get_request_tenant] = override_get_request_tenant

    return application


@pytest_asyncio.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
