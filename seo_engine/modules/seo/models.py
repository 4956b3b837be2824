"""SEO module database models."""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, DateTime, Float, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from seo_engine.core.base_model import Base, TenantMixin, TimestampMixin, UUIDMixin


class SeoUrlType(str, Enum):
    """Content kind behind a URL."""

    VEHICLE_DETAIL = "vehicle_detail"
    COLLECTION = "collection"
    BLOG_POST = "blog_post"
    FAQ = "faq"
    STATIC = "static"


PAGE_URL_TYPES = (
    SeoUrlType.COLLECTION.value,
    SeoUrlType.BLOG_POST.value,
    SeoUrlType.FAQ.value,
    SeoUrlType.STATIC.value,
)


class ChangeFrequency(str, Enum):
    """sitemaps.org changefreq values."""

    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class RedirectType(str, Enum):
    """Embedded redirect state of an entry."""

    NONE = "none"
    PERMANENT = "301"
    TEMPORARY = "302"
    CANONICAL = "canonical"


# HTTP status served for each embedded redirect type
REDIRECT_STATUS_CODES = {
    RedirectType.PERMANENT.value: 301,
    RedirectType.TEMPORARY.value: 302,
    RedirectType.CANONICAL.value: 301,
}

EXPLICIT_REDIRECT_CODES = (301, 302, 307, 308)


class SitemapType(str, Enum):
    """Sitemap artifact kinds."""

    INDEX = "index"
    IMAGES = "images"
    VIDEOS = "videos"
    ARTICLES = "articles"
    VEHICLES = "vehicles"
    PAGES = "pages"


class SeoUrlEntry(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Canonical record for one (tenant, locale, path).

    An entry is either Active (redirect_type 'none') or Redirected. Redirected
    is terminal for that path: the entry stays for history, and the new path
    gets its own Active entry.
    """

    __tablename__ = "seo_url_entries"

    locale: Mapped[str] = mapped_column(String(10), nullable=False)

    # Path with leading slash, e.g. '/carro/honda-civic-2020'
    path: Mapped[str] = mapped_column(String(500), nullable=False)

    type: Mapped[str] = mapped_column(String(30), nullable=False)
    canonical_url: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    is_indexable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    include_in_sitemap: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sitemap_priority: Mapped[float] = mapped_column(Float, default=0.5, nullable=False)
    sitemap_changefreq: Mapped[str] = mapped_column(
        String(20), default=ChangeFrequency.WEEKLY.value, nullable=False
    )
    lastmod: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Display fields
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    meta_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    og_image: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    breadcrumbs: Mapped[list[dict[str, Any]] | None] = mapped_column(JSONB, nullable=True)

    # Structured data (JSON-LD)
    structured_data_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    structured_data_payload: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Spintax: key -> chosen indices, key -> 'alt1|alt2|alt3'
    content_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    content_templates: Mapped[dict[str, str] | None] = mapped_column(JSONB, nullable=True)

    route_params: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    extra_meta: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    # Redirect sub-state
    redirect_type: Mapped[str] = mapped_column(
        String(20), default=RedirectType.NONE.value, nullable=False
    )
    redirect_target: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    redirect_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)
    previous_slug: Mapped[str | None] = mapped_column(String(500), nullable=True)
    redirect_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index(
            "ix_seo_url_entries_tenant_locale_path",
            "tenant_id",
            "locale",
            "path",
            unique=True,
        ),
        Index("ix_seo_url_entries_sitemap", "tenant_id", "type", "include_in_sitemap"),
        CheckConstraint(
            "sitemap_priority >= 0 AND sitemap_priority <= 1",
            name="ck_seo_url_entries_priority_range",
        ),
        CheckConstraint(
            "redirect_type IN ('none', '301', '302', 'canonical')",
            name="ck_seo_url_entries_redirect_type",
        ),
        CheckConstraint(
            "redirect_type = 'none' OR (is_indexable = false AND include_in_sitemap = false)",
            name="ck_seo_url_entries_redirect_not_indexed",
        ),
    )

    def __repr__(self) -> str:
        return f"<SeoUrlEntry {self.locale}:{self.path}>"

    @property
    def has_redirect(self) -> bool:
        return bool(self.redirect_type) and self.redirect_type != RedirectType.NONE.value

    @property
    def status(self) -> str:
        """'active' or 'redirect_<type>'."""
        if self.has_redirect:
            return f"redirect_{self.redirect_type}"
        return "active"

    @property
    def robots_meta(self) -> str:
        """Generate robots meta content."""
        return "index, follow" if self.is_indexable else "noindex, follow"

    def enforce_redirect_invariant(self) -> None:
        """A redirected entry is never indexable nor listed in sitemaps."""
        if self.has_redirect:
            self.is_indexable = False
            self.include_in_sitemap = False


class UrlRedirect(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Explicit operator redirect, independent of entry redirects.

    Takes precedence over an entry's embedded redirect when serving.
    """

    __tablename__ = "url_redirects"

    old_path: Mapped[str] = mapped_column(String(500), nullable=False)
    new_path: Mapped[str] = mapped_column(String(2000), nullable=False)
    status_code: Mapped[int] = mapped_column(Integer, default=301, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Last time the redirect was served
    redirected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_url_redirects_tenant_old_path", "tenant_id", "old_path", unique=True),
        CheckConstraint(
            "status_code IN (301, 302, 307, 308)",
            name="ck_url_redirects_status_code",
        ),
    )

    def __repr__(self) -> str:
        return f"<UrlRedirect {self.old_path} -> {self.new_path}>"


# Options merged under SitemapConfig.config_data per type
SITEMAP_TYPE_DEFAULTS: dict[str, dict[str, Any]] = {
    SitemapType.VEHICLES.value: {"include_images": True, "max_items": 1000},
    SitemapType.IMAGES.value: {"max_items": 500, "include_captions": True},
    SitemapType.PAGES.value: {"max_items": None},
}


class SitemapConfig(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Per-tenant sitemap generation settings."""

    __tablename__ = "sitemap_configs"

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    url: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    priority: Mapped[float] = mapped_column(Float, default=0.5, nullable=False)
    change_frequency: Mapped[str] = mapped_column(
        String(20), default=ChangeFrequency.DAILY.value, nullable=False
    )
    config_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        Index("ix_sitemap_configs_tenant_url", "tenant_id", "url", unique=True),
        CheckConstraint(
            "type IN ('index', 'images', 'videos', 'articles', 'vehicles', 'pages')",
            name="ck_sitemap_configs_type",
        ),
        CheckConstraint(
            "priority >= 0 AND priority <= 1",
            name="ck_sitemap_configs_priority_range",
        ),
    )

    def __repr__(self) -> str:
        return f"<SitemapConfig {self.type} {self.url}>"

    def config_for_type(self) -> dict[str, Any]:
        """Type defaults overlaid with the stored options."""
        return {**SITEMAP_TYPE_DEFAULTS.get(self.type, {}), **(self.config_data or {})}

    def set_priority(self, value: float) -> None:
        self.priority = min(max(float(value), 0.0), 1.0)


def default_robots_rules() -> dict[str, dict[str, Any]]:
    """User-agent rules given to a tenant that never configured robots."""
    return {
        "*": {
            "allow": ["/"],
            "disallow": ["/admin/", "/private/", "/temp/", "/api/"],
            "crawl_delay": 1,
        }
    }


class RobotsConfig(Base, UUIDMixin, TimestampMixin, TenantMixin):
    """Per-tenant, per-locale robots.txt directives."""

    __tablename__ = "robots_configs"

    locale: Mapped[str] = mapped_column(String(10), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # agent -> {"allow": [...], "disallow": [...], "crawl_delay": n}
    user_agent_rules: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    custom_rules: Mapped[str | None] = mapped_column(Text, nullable=True)
    host_directive: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sitemap_urls: Mapped[list[str] | None] = mapped_column(JSONB, nullable=True)
    include_sitemap_index: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    include_sitemap_files: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    last_generated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_generated_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        Index("ix_robots_configs_tenant_locale", "tenant_id", "locale", unique=True),
    )

    def __repr__(self) -> str:
        return f"<RobotsConfig {self.locale}>"

    @classmethod
    def default_for(cls, tenant_id: Any, locale: str) -> "RobotsConfig":
        """Unsaved config carrying the default rules."""
        return cls(
            tenant_id=tenant_id,
            locale=locale,
            is_active=True,
            user_agent_rules=default_robots_rules(),
            custom_rules=None,
            host_directive=None,
            sitemap_urls=[],
            include_sitemap_index=True,
            include_sitemap_files=True,
        )
