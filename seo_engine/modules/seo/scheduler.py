"""Decides which sitemap configs are due for regeneration."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.core.database import transactional
from seo_engine.core.logging import get_logger
from seo_engine.core.storage import FileStore
from seo_engine.modules.seo.models import ChangeFrequency, SitemapConfig, SitemapType
from seo_engine.modules.seo.registry import UrlRegistryService
from seo_engine.modules.seo.sitemap import INDEX_FILENAME, primary_filename, sitemap_dir

logger = get_logger(__name__)

FREQUENCY_THRESHOLDS = {
    ChangeFrequency.HOURLY.value: timedelta(hours=1),
    ChangeFrequency.DAILY.value: timedelta(days=1),
    ChangeFrequency.WEEKLY.value: timedelta(days=7),
    ChangeFrequency.MONTHLY.value: timedelta(days=30),
    ChangeFrequency.YEARLY.value: timedelta(days=365),
}


def primary_file_path(config: SitemapConfig) -> str:
    return f"{sitemap_dir(config.tenant_id)}/{primary_filename(config.type)}"


class StalenessScheduler:
    """Compares the age of each config's primary file with its change frequency."""

    def __init__(
        self,
        db: AsyncSession,
        store: FileStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.db = db
        self.store = store
        self._clock = clock or (lambda: datetime.now(UTC))

    async def is_due(self, config: SitemapConfig) -> bool:
        frequency = config.change_frequency
        if frequency == ChangeFrequency.ALWAYS.value:
            return True
        if frequency == ChangeFrequency.NEVER.value:
            return False

        threshold = FREQUENCY_THRESHOLDS.get(frequency)
        if threshold is None:
            logger.warning(
                "unknown_change_frequency",
                tenant_id=str(config.tenant_id),
                change_frequency=frequency,
            )
            return False

        last_modified = await self.store.last_modified(primary_file_path(config))
        if last_modified is None:
            # A run with no URLs for the type writes only the index.
            last_modified = await self.store.last_modified(
                f"{sitemap_dir(config.tenant_id)}/{INDEX_FILENAME}"
            )
        if last_modified is None:
            return True

        return self._clock() - last_modified >= threshold

    async def list_active_configs(self) -> list[SitemapConfig]:
        stmt = (
            select(SitemapConfig)
            .where(SitemapConfig.is_active.is_(True))
            .order_by(SitemapConfig.tenant_id, SitemapConfig.type)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def due_configs(self) -> list[SitemapConfig]:
        """Active configs whose primary file is missing or old enough."""
        return [config for config in await self.list_active_configs() if await self.is_due(config)]

    @transactional
    async def ensure_default_configs(self) -> list[SitemapConfig]:
        """Give every tenant with URL entries but no sitemap config an hourly vehicles one."""
        tenant_ids = await UrlRegistryService(self.db).tenants_with_content()

        result = await self.db.execute(select(SitemapConfig.tenant_id).distinct())
        configured = set(result.scalars().all())

        created = []
        for tenant_id in tenant_ids:
            if tenant_id in configured:
                continue

            config = SitemapConfig(
                tenant_id=tenant_id,
                name="Automatic sitemap (vehicles)",
                type=SitemapType.VEHICLES.value,
                url=f"/{sitemap_dir(tenant_id)}/{primary_filename(SitemapType.VEHICLES.value)}",
                is_active=True,
                priority=0.8,
                change_frequency=ChangeFrequency.HOURLY.value,
                config_data={"include_images": True},
            )
            self.db.add(config)
            created.append(config)
            logger.info("default_sitemap_config_created", tenant_id=str(tenant_id))

        await self.db.flush()
        return created
