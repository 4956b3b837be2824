"""Applies content publisher events to the URL registry."""

import random

from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.core.exceptions import ValidationError
from seo_engine.core.logging import get_logger
from seo_engine.modules.seo.models import SeoUrlEntry
from seo_engine.modules.seo.redirects import RedirectService
from seo_engine.modules.seo.registry import UrlRegistryService
from seo_engine.modules.seo.schemas import ContentEvent, SeoUrlEntryUpsert
from seo_engine.modules.seo.spintax import choose_spintax_indices

logger = get_logger(__name__)


class ContentEventHandler:
    """Turns published / updated / slug_changed events into registry writes.

    Spintax choices are made once, on first publication, and kept across
    later updates unless an event carries new ones.
    """

    def __init__(self, db: AsyncSession, rng: random.Random | None = None) -> None:
        self.registry = UrlRegistryService(db)
        self.redirects = RedirectService(db)
        self.rng = rng or random.Random()

    async def handle(self, event: ContentEvent) -> SeoUrlEntry:
        logger.info(
            "content_event_received",
            kind=event.kind,
            tenant_id=str(event.tenant_id),
            path=event.entry.path,
        )

        if event.kind == "slug_changed":
            return await self._slug_changed(event)

        existing = await self.registry.resolve(
            event.tenant_id, event.entry.locale, event.entry.path
        )
        data = self._with_spintax_choices(event.entry, existing)
        return await self.registry.upsert(event.tenant_id, data, now=event.occurred_at)

    async def _slug_changed(self, event: ContentEvent) -> SeoUrlEntry:
        if not event.old_path:
            raise ValidationError(
                "slug_changed events require old_path",
                errors=[{"field": "old_path", "message": "Field required"}],
            )

        new_entry = await self.redirects.change_slug(
            event.tenant_id,
            event.entry.locale,
            event.old_path,
            event.entry.path,
            reason=event.reason,
            now=event.occurred_at,
        )
        data = self._with_spintax_choices(event.entry, new_entry)
        return await self.registry.upsert(event.tenant_id, data, now=event.occurred_at)

    def _with_spintax_choices(
        self, data: SeoUrlEntryUpsert, existing: SeoUrlEntry | None
    ) -> SeoUrlEntryUpsert:
        if data.content_data is not None or not data.content_templates:
            return data

        if existing is not None and existing.content_data:
            content_data = existing.content_data
        else:
            content_data = choose_spintax_indices(data.content_templates, self.rng)

        return data.model_copy(update={"content_data": content_data})
