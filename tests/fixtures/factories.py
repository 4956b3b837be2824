"""Factory Boy factories for test data generation."""

from datetime import datetime, timezone
from uuid import uuid4

import factory
from faker import Faker

from seo_engine.modules.seo.models import RobotsConfig, SeoUrlEntry, SitemapConfig, UrlRedirect
from seo_engine.modules.tenants.models import Tenant

fake = Faker("pt_BR")


class TenantFactory(factory.Factory):
    """Factory for Tenant model."""

    class Meta:
        model = Tenant

    id = factory.LazyFunction(uuid4)
    name = factory.LazyFunction(lambda: fake.company())
    subdomain = factory.Sequence(lambda n: f"dealer{n}")
    custom_domain = None
    is_active = True
    is_default = False
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    updated_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))


class SeoUrlEntryFactory(factory.Factory):
    """Factory for an Active vehicle entry."""

    class Meta:
        model = SeoUrlEntry

    id = factory.LazyFunction(uuid4)
    tenant_id = factory.LazyFunction(uuid4)
    locale = "pt-BR"
    path = factory.Sequence(lambda n: f"/carro/veiculo-{n}")
    type = "vehicle_detail"
    canonical_url = None
    is_indexable = True
    include_in_sitemap = True
    sitemap_priority = 0.8
    sitemap_changefreq = "daily"
    lastmod = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    title = factory.LazyFunction(lambda: fake.sentence(nb_words=4))
    meta_description = factory.LazyFunction(lambda: fake.sentence())
    og_image = None
    breadcrumbs = None
    structured_data_type = None
    structured_data_payload = None
    content_data = None
    content_templates = None
    route_params = None
    extra_meta = None
    redirect_type = "none"
    redirect_target = None
    redirect_reason = None
    previous_slug = None
    redirect_date = None
    created_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))
    updated_at = factory.LazyFunction(lambda: datetime.now(timezone.utc))


class UrlRedirectFactory(factory.Factory):
    """Factory for an active explicit redirect."""

    class Meta:
        model = UrlRedirect

    id = factory.LazyFunction(uuid4)
    tenant_id = factory.LazyFunction(uuid4)
    old_path = factory.Sequence(lambda n: f"/antigo-{n}")
    new_path = factory.Sequence(lambda n: f"/novo-{n}")
    status_code = 301
    is_active = True
    redirected_at = None


class SitemapConfigFactory(factory.Factory):
    """Factory for SitemapConfig model."""

    class Meta:
        model = SitemapConfig

    id = factory.LazyFunction(uuid4)
    tenant_id = factory.LazyFunction(uuid4)
    name = "Vehicles"
    url = factory.Sequence(lambda n: f"/sitemap-vehicles-{n}.xml")
    type = "vehicles"
    is_active = True
    priority = 0.8
    change_frequency = "daily"
    config_data = None


class RobotsConfigFactory(factory.Factory):
    """Factory for RobotsConfig model."""

    class Meta:
        model = RobotsConfig

    id = factory.LazyFunction(uuid4)
    tenant_id = factory.LazyFunction(uuid4)
    locale = "pt-BR"
    is_active = True
    user_agent_rules = factory.LazyFunction(
        lambda: {"*": {"allow": ["/"], "disallow": ["/admin/"], "crawl_delay": None}}
    )
    custom_rules = None
    host_directive = None
    sitemap_urls = factory.LazyFunction(list)
    include_sitemap_index = True
    include_sitemap_files = True
    notes = None
    last_generated_at = None
    last_generated_by = None
