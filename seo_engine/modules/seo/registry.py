"""URL registry: the canonical store of per-tenant, per-locale paths."""

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.config import settings
from seo_engine.core.database import transactional
from seo_engine.core.exceptions import NotFoundError
from seo_engine.core.logging import get_logger
from seo_engine.modules.seo.models import RedirectType, SeoUrlEntry
from seo_engine.modules.seo.schemas import SeoUrlEntryUpsert

logger = get_logger(__name__)

REDIRECT_FIELDS = ("redirect_type", "redirect_target", "redirect_reason")


class UrlRegistryService:
    """Service for reading and writing URL entries."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def resolve(self, tenant_id: UUID, locale: str, path: str) -> SeoUrlEntry | None:
        """Get the entry for a path, or None. Never raises for a missing mapping."""
        stmt = (
            select(SeoUrlEntry)
            .where(SeoUrlEntry.tenant_id == tenant_id)
            .where(SeoUrlEntry.locale == locale)
            .where(SeoUrlEntry.path == path)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, entry_id: UUID, tenant_id: UUID) -> SeoUrlEntry:
        """Get entry by ID."""
        stmt = (
            select(SeoUrlEntry)
            .where(SeoUrlEntry.id == entry_id)
            .where(SeoUrlEntry.tenant_id == tenant_id)
        )
        result = await self.db.execute(stmt)
        entry = result.scalar_one_or_none()

        if not entry:
            raise NotFoundError("SeoUrlEntry", entry_id)

        return entry

    @transactional
    async def upsert(
        self,
        tenant_id: UUID,
        data: SeoUrlEntryUpsert,
        now: datetime | None = None,
    ) -> SeoUrlEntry:
        """Create or update the entry at (tenant, locale, path).

        lastmod is refreshed unless the caller provides one. A written state
        that carries a redirect has its indexable/sitemap flags cleared. An
        entry that is already redirected keeps its redirect sub-state.
        """
        values = data.model_dump()
        if values.get("lastmod") is None:
            values["lastmod"] = now or datetime.now(UTC)

        existing = await self.resolve(tenant_id, data.locale, data.path)

        if existing:
            if existing.has_redirect:
                for field in REDIRECT_FIELDS:
                    values.pop(field, None)
            for field, value in values.items():
                setattr(existing, field, value)
            entry = existing
        else:
            entry = SeoUrlEntry(tenant_id=tenant_id, **values)
            self.db.add(entry)

        entry.enforce_redirect_invariant()
        if entry.has_redirect and entry.redirect_date is None:
            entry.redirect_date = values["lastmod"]

        await self.db.flush()
        await self.db.refresh(entry)

        logger.info(
            "seo_url_upserted",
            tenant_id=str(tenant_id),
            locale=entry.locale,
            path=entry.path,
            created=existing is None,
        )
        return entry

    @transactional
    async def touch(self, entry: SeoUrlEntry, now: datetime | None = None) -> SeoUrlEntry:
        """Refresh lastmod after a content update."""
        entry.lastmod = now or datetime.now(UTC)
        await self.db.flush()
        return entry

    @staticmethod
    def is_stale(
        entry: SeoUrlEntry,
        max_age_days: int | None = None,
        now: datetime | None = None,
    ) -> bool:
        """True when lastmod is missing or older than max_age_days whole days."""
        if entry.lastmod is None:
            return True

        if max_age_days is None:
            max_age_days = settings.url_stale_days
        now = now or datetime.now(UTC)
        return (now - entry.lastmod).days > max_age_days

    async def list_sitemap_entries(
        self,
        tenant_id: UUID,
        url_types: Sequence[str],
        require_image: bool = False,
    ) -> list[SeoUrlEntry]:
        """Entries eligible for a sitemap, newest first."""
        stmt = (
            select(SeoUrlEntry)
            .where(SeoUrlEntry.tenant_id == tenant_id)
            .where(SeoUrlEntry.type.in_(list(url_types)))
            .where(SeoUrlEntry.include_in_sitemap.is_(True))
            .where(SeoUrlEntry.is_indexable.is_(True))
            .where(SeoUrlEntry.redirect_type == RedirectType.NONE.value)
        )
        if require_image:
            stmt = stmt.where(SeoUrlEntry.og_image.is_not(None))

        stmt = stmt.order_by(SeoUrlEntry.lastmod.desc().nullslast(), SeoUrlEntry.path)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def tenants_with_content(self) -> list[UUID]:
        """IDs of tenants that have at least one entry."""
        stmt = select(SeoUrlEntry.tenant_id).distinct()
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
