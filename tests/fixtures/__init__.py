"""Test fixtures and factories."""

from tests.fixtures.factories import (
    RobotsConfigFactory,
    SeoUrlEntryFactory,
    SitemapConfigFactory,
    TenantFactory,
    UrlRedirectFactory,
)

__all__ = [
    "TenantFactory",
    "SeoUrlEntryFactory",
    "UrlRedirectFactory",
    "SitemapConfigFactory",
    "RobotsConfigFactory",
]
