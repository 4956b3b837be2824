"""Unit tests for content publisher events."""

import random
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from seo_engine.core.exceptions import ValidationError
from seo_engine.modules.seo.publishing import ContentEventHandler
from seo_engine.modules.seo.schemas import ContentEvent, SeoUrlEntryUpsert
from tests.fixtures.factories import SeoUrlEntryFactory

TEMPLATES = {"intro": "Oferta|Promoção|Imperdível"}


def vehicle(path: str = "/carro/honda-civic-2020", **kwargs) -> SeoUrlEntryUpsert:
    return SeoUrlEntryUpsert(
        locale="pt-BR",
        path=path,
        type="vehicle_detail",
        title="{intro}: Honda Civic 2020",
        content_templates=TEMPLATES,
        **kwargs,
    )


class TestContentEventHandler:
    """Tests for ContentEventHandler."""

    @pytest.fixture
    def handler(self, mock_db: AsyncMock) -> ContentEventHandler:
        handler = ContentEventHandler(mock_db, rng=random.Random(3))
        handler.registry.resolve = AsyncMock(return_value=None)
        handler.registry.upsert = AsyncMock(side_effect=lambda tenant_id, data, now=None: data)
        handler.redirects.change_slug = AsyncMock()
        return handler

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_publish_chooses_spintax_once(self, handler: ContentEventHandler, now) -> None:
        event = ContentEvent(kind="published", tenant_id=uuid4(), entry=vehicle(), occurred_at=now)

        written = await handler.handle(event)

        assert list(written.content_data) == ["intro"]
        assert 0 <= written.content_data["intro"][0] < 3
        handler.registry.upsert.assert_awaited_once()
        assert handler.registry.upsert.await_args.kwargs["now"] == now

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_update_keeps_existing_choices(self, handler: ContentEventHandler) -> None:
        existing = SeoUrlEntryFactory(content_templates=TEMPLATES, content_data={"intro": [2]})
        handler.registry.resolve.return_value = existing
        event = ContentEvent(kind="updated", tenant_id=existing.tenant_id, entry=vehicle())

        written = await handler.handle(event)

        assert written.content_data == {"intro": [2]}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_event_choices_take_precedence(self, handler: ContentEventHandler) -> None:
        existing = SeoUrlEntryFactory(content_templates=TEMPLATES, content_data={"intro": [2]})
        handler.registry.resolve.return_value = existing
        event = ContentEvent(
            kind="updated",
            tenant_id=existing.tenant_id,
            entry=vehicle(content_data={"intro": [0]}),
        )

        written = await handler.handle(event)

        assert written.content_data == {"intro": [0]}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_entry_without_templates_untouched(self, handler: ContentEventHandler) -> None:
        entry = SeoUrlEntryUpsert(locale="pt-BR", path="/sobre", type="static")
        event = ContentEvent(kind="published", tenant_id=uuid4(), entry=entry)

        written = await handler.handle(event)

        assert written.content_data is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_slug_changed_redirects_then_writes_new_path(
        self, handler: ContentEventHandler, now
    ) -> None:
        tenant_id = uuid4()
        moved = SeoUrlEntryFactory(
            tenant_id=tenant_id,
            path="/carro/honda-civic-2020",
            content_templates=TEMPLATES,
            content_data={"intro": [1]},
        )
        handler.redirects.change_slug.return_value = moved
        event = ContentEvent(
            kind="slug_changed",
            tenant_id=tenant_id,
            entry=vehicle(),
            old_path="/carro/honda-civic",
            reason="title_updated",
            occurred_at=now,
        )

        written = await handler.handle(event)

        handler.redirects.change_slug.assert_awaited_once_with(
            tenant_id,
            "pt-BR",
            "/carro/honda-civic",
            "/carro/honda-civic-2020",
            reason="title_updated",
            now=now,
        )
        assert written.path == "/carro/honda-civic-2020"
        assert written.content_data == {"intro": [1]}
        handler.registry.resolve.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_slug_changed_requires_old_path(self, handler: ContentEventHandler) -> None:
        event = ContentEvent(kind="slug_changed", tenant_id=uuid4(), entry=vehicle())

        with pytest.raises(ValidationError):
            await handler.handle(event)

        handler.redirects.change_slug.assert_not_awaited()
        handler.registry.upsert.assert_not_awaited()
