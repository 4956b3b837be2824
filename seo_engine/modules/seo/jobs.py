"""Batch generation across tenants.

Each tenant runs in isolation: its (tenant, type) locks are taken without
waiting, a held lock skips the tenant, and a failure is logged and recorded
before moving on to the next tenant.
"""

from collections import defaultdict
from collections.abc import Callable, Sequence
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.config import settings
from seo_engine.core.locks import LockManager, generation_lock_key
from seo_engine.core.logging import bind_context, get_logger, unbind_context
from seo_engine.core.storage import FileStore
from seo_engine.modules.seo.robots import RobotsService
from seo_engine.modules.seo.scheduler import StalenessScheduler
from seo_engine.modules.seo.schemas import RobotsPublishResult, SitemapGenerationResult
from seo_engine.modules.seo.sitemap import CONTENT_TYPES, SitemapGenerator
from seo_engine.modules.tenants.models import Tenant
from seo_engine.modules.tenants.service import TenantService

logger = get_logger(__name__)

INDEX_LOCK_TYPE = "index"


@dataclass
class JobReport:
    """What a batch run did per tenant."""

    results: list[SitemapGenerationResult | RobotsPublishResult] = field(default_factory=list)
    skipped: list[UUID] = field(default_factory=list)
    failed: dict[UUID, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> int:
        return len(self.results)


def lock_types_for(sitemap_type: str) -> list[str]:
    """Artifact types a generation run writes and must hold locks for.

    Every run rewrites the shared index, so "index" is always included.
    """
    if sitemap_type == "all":
        return [*CONTENT_TYPES, INDEX_LOCK_TYPE]
    if sitemap_type == INDEX_LOCK_TYPE:
        return [INDEX_LOCK_TYPE]
    return [sitemap_type, INDEX_LOCK_TYPE]


async def _target_tenants(db: AsyncSession, tenant_id: UUID | None) -> list[Tenant]:
    service = TenantService(db)
    if tenant_id is not None:
        return [await service.get_by_id(tenant_id)]
    return await service.list_active()


async def _generate_for_tenant(
    db: AsyncSession,
    generator: SitemapGenerator,
    locks: LockManager,
    tenant: Tenant,
    sitemap_types: Sequence[str],
    report: JobReport,
    dry_run: bool = False,
) -> None:
    bind_context(tenant_id=str(tenant.id))
    try:
        async with AsyncExitStack() as stack:
            if not dry_run:
                for lock_type in sorted({t for s in sitemap_types for t in lock_types_for(s)}):
                    acquired = await stack.enter_async_context(
                        locks.hold(generation_lock_key(tenant.id, lock_type))
                    )
                    if not acquired:
                        logger.info("sitemap_generation_skipped_locked", lock_type=lock_type)
                        report.skipped.append(tenant.id)
                        return

            for sitemap_type in sitemap_types:
                result = await generator.generate(tenant, sitemap_type, dry_run=dry_run)
                report.results.append(result)
    except Exception as e:
        logger.exception("sitemap_generation_failed", error=str(e))
        report.failed[tenant.id] = str(e)
        await db.rollback()
    finally:
        unbind_context("tenant_id")


async def run_sitemap_generation(
    db: AsyncSession,
    store: FileStore,
    locks: LockManager,
    tenant_id: UUID | None = None,
    sitemap_type: str = "all",
    limit: int | None = None,
    dry_run: bool = False,
    clock: Callable[[], datetime] | None = None,
) -> JobReport:
    """Generate sitemaps for one tenant or every active tenant."""
    generator = SitemapGenerator(db, store, limit=limit, clock=clock)
    report = JobReport()

    tenants = await _target_tenants(db, tenant_id)
    logger.info(
        "sitemap_generation_started",
        tenants=len(tenants),
        sitemap_type=sitemap_type,
        limit=generator.limit,
        dry_run=dry_run,
    )

    for tenant in tenants:
        await _generate_for_tenant(db, generator, locks, tenant, [sitemap_type], report, dry_run)

    logger.info(
        "sitemap_generation_finished",
        succeeded=report.succeeded,
        skipped=len(report.skipped),
        failed=len(report.failed),
    )
    return report


async def run_due_generation(
    db: AsyncSession,
    store: FileStore,
    locks: LockManager,
    clock: Callable[[], datetime] | None = None,
) -> JobReport:
    """Create missing default configs, then regenerate every due config."""
    scheduler = StalenessScheduler(db, store, clock=clock)
    await scheduler.ensure_default_configs()

    due_types: dict[UUID, list[str]] = defaultdict(list)
    for config in await scheduler.due_configs():
        if config.type not in due_types[config.tenant_id]:
            due_types[config.tenant_id].append(config.type)

    report = JobReport()
    if not due_types:
        logger.info("no_sitemaps_due")
        return report

    generator = SitemapGenerator(db, store, clock=clock)
    tenants = {tenant.id: tenant for tenant in await TenantService(db).list_active()}

    for tenant_id, sitemap_types in due_types.items():
        tenant = tenants.get(tenant_id)
        if tenant is None:
            logger.warning("due_config_for_inactive_tenant", tenant_id=str(tenant_id))
            continue

        supported = [t for t in sitemap_types if t in (*CONTENT_TYPES, "index")]
        if len(supported) < len(sitemap_types):
            logger.warning(
                "sitemap_type_not_generated",
                tenant_id=str(tenant_id),
                types=[t for t in sitemap_types if t not in supported],
            )
        if supported:
            await _generate_for_tenant(db, generator, locks, tenant, supported, report)

    logger.info(
        "due_generation_finished",
        succeeded=report.succeeded,
        skipped=len(report.skipped),
        failed=len(report.failed),
    )
    return report


async def run_robots_generation(
    db: AsyncSession,
    store: FileStore,
    locks: LockManager,
    tenant_id: UUID | None = None,
    locale: str | None = None,
    generated_by: str = "cli",
) -> JobReport:
    """Publish robots.txt for one tenant or every active tenant."""
    locale = locale or settings.default_locale
    service = RobotsService(db, store)
    report = JobReport()

    for tenant in await _target_tenants(db, tenant_id):
        bind_context(tenant_id=str(tenant.id))
        try:
            async with locks.hold(generation_lock_key(tenant.id, f"robots:{locale}")) as acquired:
                if not acquired:
                    logger.info("robots_generation_skipped_locked", locale=locale)
                    report.skipped.append(tenant.id)
                    continue
                report.results.append(await service.publish(tenant, locale, generated_by))
        except Exception as e:
            logger.exception("robots_generation_failed", locale=locale, error=str(e))
            report.failed[tenant.id] = str(e)
        finally:
            unbind_context("tenant_id")

    return report
