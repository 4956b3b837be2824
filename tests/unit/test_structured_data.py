"""Unit tests for JSON-LD and page metadata."""

import pytest

from seo_engine.modules.seo.structured_data import (
    build_page_meta,
    generate_breadcrumbs,
    generate_structured_data,
)
from tests.fixtures.factories import SeoUrlEntryFactory


@pytest.mark.unit
class TestStructuredData:
    def test_wraps_payload_with_schema_org_context(self) -> None:
        entry = SeoUrlEntryFactory(
            structured_data_type="Car",
            structured_data_payload={"name": "Honda Civic 2020", "vehicleModelDate": "2020"},
        )

        data = generate_structured_data(entry)

        assert data == {
            "@context": "https://schema.org",
            "@type": "Car",
            "name": "Honda Civic 2020",
            "vehicleModelDate": "2020",
        }

    def test_absent_without_type_or_payload(self) -> None:
        assert generate_structured_data(SeoUrlEntryFactory()) is None
        assert generate_structured_data(
            SeoUrlEntryFactory(structured_data_type="Car", structured_data_payload=None)
        ) is None
        assert generate_structured_data(
            SeoUrlEntryFactory(structured_data_type=None, structured_data_payload={"a": 1})
        ) is None


@pytest.mark.unit
class TestBreadcrumbs:
    def test_positions_start_at_one(self) -> None:
        entry = SeoUrlEntryFactory(
            breadcrumbs=[
                {"name": "Início", "item": "https://omega.localhost/"},
                {"name": "Carros", "item": "https://omega.localhost/carros"},
            ]
        )

        data = generate_breadcrumbs(entry)

        assert data["@type"] == "BreadcrumbList"
        items = data["itemListElement"]
        assert [item["position"] for item in items] == [1, 2]
        assert items[1] == {
            "@type": "ListItem",
            "position": 2,
            "name": "Carros",
            "item": "https://omega.localhost/carros",
        }

    def test_absent_without_breadcrumbs(self) -> None:
        assert generate_breadcrumbs(SeoUrlEntryFactory(breadcrumbs=None)) is None
        assert generate_breadcrumbs(SeoUrlEntryFactory(breadcrumbs=[])) is None


@pytest.mark.unit
class TestPageMeta:
    def test_expands_spintax_in_title_and_description(self) -> None:
        entry = SeoUrlEntryFactory(
            title="{intro}: Civic",
            meta_description="Honda Civic. {intro}",
            content_templates={"intro": "Oferta|Promoção"},
            content_data={"intro": [1]},
        )

        meta = build_page_meta(entry)

        assert meta.title == "Promoção: Civic"
        assert meta.description == "Honda Civic. Promoção"

    def test_canonical_falls_back_to_base_url_and_path(self) -> None:
        entry = SeoUrlEntryFactory(path="/carro/honda-civic-2020", canonical_url=None)

        meta = build_page_meta(entry, "https://omega.localhost/")

        assert meta.canonical_url == "https://omega.localhost/carro/honda-civic-2020"

    def test_explicit_canonical_kept(self) -> None:
        entry = SeoUrlEntryFactory(canonical_url="https://example.com/x")

        meta = build_page_meta(entry, "https://omega.localhost")

        assert meta.canonical_url == "https://example.com/x"

    def test_robots_follows_indexable_flag(self) -> None:
        assert build_page_meta(SeoUrlEntryFactory(is_indexable=True)).robots == "index, follow"
        assert build_page_meta(SeoUrlEntryFactory(is_indexable=False)).robots == "noindex, follow"
