"""Redirect transitions and inbound path resolution.

Two kinds of redirect exist:

* embedded: the redirect sub-state of a ``SeoUrlEntry``, written when a
  slug changes (Active -> Redirected, terminal for that path);
* explicit: a ``UrlRedirect`` row created by an operator.

When serving, an active explicit redirect always wins over the entry's own
redirect. Resolution is single-hop; chains are checked for loops when a
redirect is created.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal
from urllib.parse import urlsplit
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.config import settings
from seo_engine.core.database import transactional
from seo_engine.core.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    RedirectLoopError,
    RedirectStateError,
    ValidationError,
)
from seo_engine.core.logging import get_logger
from seo_engine.modules.seo.models import (
    REDIRECT_STATUS_CODES,
    RedirectType,
    SeoUrlEntry,
    UrlRedirect,
)
from seo_engine.modules.seo.registry import UrlRegistryService
from seo_engine.modules.seo.schemas import UrlRedirectCreate

logger = get_logger(__name__)

# Entry fields carried over to the entry created at the new path
CARRIED_FIELDS = (
    "type",
    "sitemap_priority",
    "sitemap_changefreq",
    "title",
    "meta_description",
    "og_image",
    "breadcrumbs",
    "structured_data_type",
    "structured_data_payload",
    "content_data",
    "content_templates",
    "route_params",
    "extra_meta",
)


def target_path(target: str) -> str:
    """Path component of a redirect target that may be an absolute URL."""
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return parts.path or "/"
    return target


class RedirectService:
    """Service for embedded and explicit redirects."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.registry = UrlRegistryService(db)

    # ------------------------------------------------------------------
    # Explicit redirects
    # ------------------------------------------------------------------

    async def get_active(self, tenant_id: UUID, old_path: str) -> UrlRedirect | None:
        """Get active explicit redirect by exact old path."""
        stmt = (
            select(UrlRedirect)
            .where(UrlRedirect.tenant_id == tenant_id)
            .where(UrlRedirect.old_path == old_path)
            .where(UrlRedirect.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_old_path(self, tenant_id: UUID, old_path: str) -> UrlRedirect | None:
        stmt = (
            select(UrlRedirect)
            .where(UrlRedirect.tenant_id == tenant_id)
            .where(UrlRedirect.old_path == old_path)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, redirect_id: UUID, tenant_id: UUID) -> UrlRedirect:
        """Get explicit redirect by ID."""
        stmt = (
            select(UrlRedirect)
            .where(UrlRedirect.id == redirect_id)
            .where(UrlRedirect.tenant_id == tenant_id)
        )
        result = await self.db.execute(stmt)
        redirect = result.scalar_one_or_none()

        if not redirect:
            raise NotFoundError("UrlRedirect", redirect_id)

        return redirect

    @transactional
    async def create_explicit(self, tenant_id: UUID, data: UrlRedirectCreate) -> UrlRedirect:
        """Create an operator redirect."""
        if await self.get_by_old_path(tenant_id, data.old_path):
            raise AlreadyExistsError("UrlRedirect", "old_path", data.old_path)

        if data.is_active:
            await self.check_chain(tenant_id, data.old_path, data.new_path)

        redirect = UrlRedirect(
            tenant_id=tenant_id,
            old_path=data.old_path,
            new_path=data.new_path,
            status_code=data.status_code,
            is_active=data.is_active,
        )
        self.db.add(redirect)
        await self.db.flush()

        logger.info(
            "explicit_redirect_created",
            tenant_id=str(tenant_id),
            old_path=data.old_path,
            new_path=data.new_path,
            status_code=data.status_code,
        )
        return redirect

    @transactional
    async def deactivate(self, redirect_id: UUID, tenant_id: UUID) -> UrlRedirect:
        """Stop serving an explicit redirect; the row is kept."""
        redirect = await self.get_by_id(redirect_id, tenant_id)
        redirect.is_active = False
        await self.db.flush()
        return redirect

    @transactional
    async def mark_redirected(
        self, redirect: UrlRedirect, now: datetime | None = None
    ) -> UrlRedirect:
        """Stamp the time the redirect was last served."""
        redirect.redirected_at = now or datetime.now(UTC)
        await self.db.flush()
        return redirect

    # ------------------------------------------------------------------
    # Embedded redirects
    # ------------------------------------------------------------------

    @transactional
    async def create_redirect(
        self,
        entry: SeoUrlEntry,
        target_url: str,
        reason: str = "slug_changed",
        redirect_type: RedirectType | str = RedirectType.PERMANENT,
        now: datetime | None = None,
    ) -> SeoUrlEntry:
        """Move an entry from Active to Redirected."""
        await self._apply_redirect(entry, target_url, reason, redirect_type, now)
        await self.db.flush()
        return entry

    @transactional
    async def change_slug(
        self,
        tenant_id: UUID,
        locale: str,
        old_path: str,
        new_path: str,
        reason: str = "slug_changed",
        now: datetime | None = None,
    ) -> SeoUrlEntry:
        """Redirect the entry at old_path and create the Active entry at new_path.

        Returns the entry at the new path.
        """
        now = now or datetime.now(UTC)

        old_entry = await self.registry.resolve(tenant_id, locale, old_path)
        if old_entry is None:
            raise NotFoundError("SeoUrlEntry", old_path)

        new_entry = await self.registry.resolve(tenant_id, locale, new_path)
        if new_entry is not None and new_entry.has_redirect:
            raise RedirectStateError(new_path, new_entry.redirect_type)

        if new_entry is None:
            new_entry = SeoUrlEntry(
                tenant_id=tenant_id,
                locale=locale,
                path=new_path,
                is_indexable=True,
                include_in_sitemap=True,
                redirect_type=RedirectType.NONE.value,
            )
            for field in CARRIED_FIELDS:
                setattr(new_entry, field, getattr(old_entry, field))
            self.db.add(new_entry)

        new_entry.lastmod = now

        await self._apply_redirect(old_entry, new_path, reason, RedirectType.PERMANENT, now)
        await self.db.flush()

        return new_entry

    async def _apply_redirect(
        self,
        entry: SeoUrlEntry,
        target_url: str,
        reason: str,
        redirect_type: RedirectType | str,
        now: datetime | None,
    ) -> None:
        redirect_type = RedirectType(redirect_type)
        if redirect_type is RedirectType.NONE:
            raise ValidationError(
                "Redirect type must be 301, 302 or canonical",
                errors=[{"field": "redirect_type", "value": redirect_type.value}],
            )

        if entry.has_redirect:
            raise RedirectStateError(entry.path, entry.redirect_type)

        await self.check_chain(entry.tenant_id, entry.path, target_url, locale=entry.locale)

        entry.redirect_type = redirect_type.value
        entry.redirect_target = target_url
        entry.redirect_reason = reason
        entry.previous_slug = entry.path
        entry.redirect_date = now or datetime.now(UTC)
        entry.enforce_redirect_invariant()

        logger.info(
            "url_redirected",
            tenant_id=str(entry.tenant_id),
            locale=entry.locale,
            path=entry.path,
            target=target_url,
            redirect_type=redirect_type.value,
            reason=reason,
        )

    # ------------------------------------------------------------------
    # Loop detection
    # ------------------------------------------------------------------

    async def next_hop(self, tenant_id: UUID, path: str, locale: str | None = None) -> str | None:
        """Where a request for path would be sent next, if anywhere."""
        explicit = await self.get_active(tenant_id, path)
        if explicit is not None:
            return target_path(explicit.new_path)

        stmt = (
            select(SeoUrlEntry)
            .where(SeoUrlEntry.tenant_id == tenant_id)
            .where(SeoUrlEntry.path == path)
            .where(SeoUrlEntry.redirect_type != RedirectType.NONE.value)
        )
        if locale is not None:
            stmt = stmt.where(SeoUrlEntry.locale == locale)

        result = await self.db.execute(stmt.limit(1))
        entry = result.scalars().first()
        if entry is not None and entry.redirect_target:
            return target_path(entry.redirect_target)

        return None

    async def check_chain(
        self,
        tenant_id: UUID,
        origin: str,
        target: str,
        locale: str | None = None,
    ) -> None:
        """Raise RedirectLoopError if origin -> target would cycle or run too long."""
        chain = [origin, target_path(target)]
        current = chain[-1]

        for _ in range(settings.max_redirect_hops):
            if current == origin:
                raise RedirectLoopError(chain)

            following = await self.next_hop(tenant_id, current, locale)
            if following is None:
                return

            chain.append(following)
            current = following

        raise RedirectLoopError(chain)


@dataclass(frozen=True)
class PathResolution:
    """What an inbound path serves."""

    kind: Literal["content", "redirect", "not_found"]
    status_code: int
    location: str | None = None
    source: Literal["explicit", "embedded"] | None = None
    entry: SeoUrlEntry | None = None
    explicit_redirect: UrlRedirect | None = None

    @classmethod
    def not_found(cls) -> "PathResolution":
        return cls(kind="not_found", status_code=404)


class PathResolver:
    """Decides, for an inbound path, between content and a redirect.

    Usage:
        resolution = await PathResolver(db).resolve(tenant_id, "pt-BR", "/carro/x")
        if resolution.kind == "redirect":
            return RedirectResponse(resolution.location, resolution.status_code)
    """

    def __init__(self, db: AsyncSession) -> None:
        self.redirects = RedirectService(db)
        self.registry = self.redirects.registry

    async def resolve(self, tenant_id: UUID, locale: str, path: str) -> PathResolution:
        explicit = await self.redirects.get_active(tenant_id, path)
        if explicit is not None:
            return PathResolution(
                kind="redirect",
                status_code=explicit.status_code,
                location=explicit.new_path,
                source="explicit",
                explicit_redirect=explicit,
            )

        entry = await self.registry.resolve(tenant_id, locale, path)
        if entry is None:
            return PathResolution.not_found()

        if entry.has_redirect:
            return PathResolution(
                kind="redirect",
                status_code=REDIRECT_STATUS_CODES[entry.redirect_type],
                location=entry.redirect_target,
                source="embedded",
                entry=entry,
            )

        return PathResolution(kind="content", status_code=200, entry=entry)
