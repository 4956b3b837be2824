"""Unit tests for the staleness scheduler."""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from seo_engine.core.storage import MemoryFileStore
from seo_engine.modules.seo.models import SitemapConfig
from seo_engine.modules.seo.registry import UrlRegistryService
from seo_engine.modules.seo.scheduler import StalenessScheduler, primary_file_path
from seo_engine.modules.seo.sitemap import INDEX_FILENAME, SitemapGenerator, sitemap_dir
from seo_engine.modules.tenants.models import Tenant
from tests.fixtures.factories import SitemapConfigFactory


@pytest.fixture
def scheduler(mock_db: AsyncMock, memory_store: MemoryFileStore, clock) -> StalenessScheduler:
    return StalenessScheduler(mock_db, memory_store, clock=clock)


def age_file(store: MemoryFileStore, config: SitemapConfig, modified_at) -> None:
    store.files[primary_file_path(config)] = ("<urlset/>", modified_at)


@pytest.mark.unit
class TestIsDue:
    @pytest.mark.asyncio
    async def test_always_is_due_even_when_fresh(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(change_frequency="always")
        age_file(memory_store, config, now)

        assert await scheduler.is_due(config) is True

    @pytest.mark.asyncio
    async def test_never_is_not_due_even_when_missing(self, scheduler: StalenessScheduler) -> None:
        config = SitemapConfigFactory(change_frequency="never")

        assert await scheduler.is_due(config) is False

    @pytest.mark.asyncio
    async def test_missing_file_is_due(self, scheduler: StalenessScheduler) -> None:
        assert await scheduler.is_due(SitemapConfigFactory(change_frequency="monthly")) is True

    @pytest.mark.asyncio
    async def test_daily_not_due_after_two_hours(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(change_frequency="daily")
        age_file(memory_store, config, now - timedelta(hours=2))

        assert await scheduler.is_due(config) is False

    @pytest.mark.asyncio
    async def test_daily_due_after_twenty_five_hours(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(change_frequency="daily")
        age_file(memory_store, config, now - timedelta(hours=25))

        assert await scheduler.is_due(config) is True

    @pytest.mark.asyncio
    async def test_weekly_due_at_exactly_seven_days(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(change_frequency="weekly")
        age_file(memory_store, config, now - timedelta(days=7))

        assert await scheduler.is_due(config) is True

    @pytest.mark.asyncio
    async def test_unknown_frequency_is_not_due(self, scheduler: StalenessScheduler) -> None:
        assert await scheduler.is_due(SitemapConfigFactory(change_frequency="fortnightly")) is False

    @pytest.mark.asyncio
    async def test_pages_config_checks_pages_file(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(type="pages", change_frequency="hourly")
        memory_store.files[f"sitemaps/{config.tenant_id}/sitemap-pages.xml"] = ("x", now)

        assert await scheduler.is_due(config) is False

    @pytest.mark.asyncio
    async def test_not_due_right_after_generating_a_type_without_urls(
        self,
        scheduler: StalenessScheduler,
        mock_db: AsyncMock,
        memory_store: MemoryFileStore,
        clock,
        tenant: Tenant,
    ) -> None:
        generator = SitemapGenerator(mock_db, memory_store, clock=clock)
        generator.registry.list_sitemap_entries = AsyncMock(return_value=[])
        config = SitemapConfigFactory(
            tenant_id=tenant.id, type="vehicles", change_frequency="daily"
        )

        await generator.generate(tenant, "vehicles")

        assert list(memory_store.files) == [f"{sitemap_dir(tenant.id)}/{INDEX_FILENAME}"]
        assert await scheduler.is_due(config) is False

    @pytest.mark.asyncio
    async def test_falls_back_to_index_age_without_chunks(
        self, scheduler: StalenessScheduler, memory_store: MemoryFileStore, now
    ) -> None:
        config = SitemapConfigFactory(type="vehicles", change_frequency="daily")
        memory_store.files[f"{sitemap_dir(config.tenant_id)}/{INDEX_FILENAME}"] = (
            "<sitemapindex/>",
            now - timedelta(hours=25),
        )

        assert await scheduler.is_due(config) is True


@pytest.mark.unit
class TestDueConfigs:
    @pytest.mark.asyncio
    async def test_filters_active_configs(
        self,
        scheduler: StalenessScheduler,
        mock_db: AsyncMock,
        memory_store: MemoryFileStore,
        now,
    ) -> None:
        fresh = SitemapConfigFactory(change_frequency="daily")
        stale = SitemapConfigFactory(change_frequency="daily")
        age_file(memory_store, fresh, now)
        age_file(memory_store, stale, now - timedelta(days=2))

        mock_result = Mock()
        mock_result.scalars.return_value.all.return_value = [fresh, stale]
        mock_db.execute.return_value = mock_result

        assert await scheduler.due_configs() == [stale]


@pytest.mark.unit
class TestEnsureDefaultConfigs:
    @pytest.mark.asyncio
    async def test_creates_hourly_vehicles_config_for_unconfigured_tenants(
        self,
        scheduler: StalenessScheduler,
        mock_db: AsyncMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        unconfigured, configured = uuid4(), uuid4()
        monkeypatch.setattr(
            UrlRegistryService,
            "tenants_with_content",
            AsyncMock(return_value=[unconfigured, configured]),
        )
        mock_result = Mock()
        mock_result.scalars.return_value.all.return_value = [configured]
        mock_db.execute.return_value = mock_result

        created = await scheduler.ensure_default_configs()

        assert len(created) == 1
        config = created[0]
        assert config.tenant_id == unconfigured
        assert config.type == "vehicles"
        assert config.change_frequency == "hourly"
        assert config.priority == 0.8
        assert config.config_data == {"include_images": True}
        assert config.url == f"/sitemaps/{unconfigured}/sitemap-vehicles-1.xml"
        mock_db.add.assert_called_once_with(config)
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_created_when_all_configured(
        self,
        scheduler: StalenessScheduler,
        mock_db: AsyncMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        tenant_id = uuid4()
        monkeypatch.setattr(
            UrlRegistryService, "tenants_with_content", AsyncMock(return_value=[tenant_id])
        )
        mock_result = Mock()
        mock_result.scalars.return_value.all.return_value = [tenant_id]
        mock_db.execute.return_value = mock_result

        assert await scheduler.ensure_default_configs() == []
        mock_db.add.assert_not_called()
