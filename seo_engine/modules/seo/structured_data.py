"""JSON-LD documents and head metadata for URL entries."""

from typing import Any

from seo_engine.modules.seo.models import SeoUrlEntry
from seo_engine.modules.seo.schemas import PageMetaResponse
from seo_engine.modules.seo.spintax import render_entry_text

SCHEMA_ORG_CONTEXT = "https://schema.org"


def generate_structured_data(entry: SeoUrlEntry) -> dict[str, Any] | None:
    """Entry payload wrapped as a schema.org document.

    Payload keys override the generated ``@context``/``@type``.
    """
    if not entry.structured_data_type or not entry.structured_data_payload:
        return None

    return {
        "@context": SCHEMA_ORG_CONTEXT,
        "@type": entry.structured_data_type,
        **entry.structured_data_payload,
    }


def generate_breadcrumbs(entry: SeoUrlEntry) -> dict[str, Any] | None:
    """BreadcrumbList with 1-based positions, or None without breadcrumbs."""
    if not entry.breadcrumbs:
        return None

    return {
        "@context": SCHEMA_ORG_CONTEXT,
        "@type": "BreadcrumbList",
        "itemListElement": [
            {
                "@type": "ListItem",
                "position": position,
                "name": crumb["name"],
                "item": crumb["item"],
            }
            for position, crumb in enumerate(entry.breadcrumbs, start=1)
        ],
    }


def build_page_meta(entry: SeoUrlEntry, base_url: str | None = None) -> PageMetaResponse:
    """Head metadata for an entry that serves content.

    Title and description are expanded with the entry's spintax choices.
    """
    canonical = entry.canonical_url
    if canonical is None and base_url:
        canonical = f"{base_url.rstrip('/')}{entry.path}"

    return PageMetaResponse(
        title=render_entry_text(entry, entry.title),
        description=render_entry_text(entry, entry.meta_description),
        og_image=entry.og_image,
        canonical_url=canonical,
        robots=entry.robots_meta,
        structured_data=generate_structured_data(entry),
        breadcrumbs=generate_breadcrumbs(entry),
    )
