"""Pydantic schemas for SEO module."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from seo_engine.modules.seo.models import (
    EXPLICIT_REDIRECT_CODES,
    ChangeFrequency,
    RedirectType,
    SeoUrlType,
)


# ============================================================================
# URL Entry Schemas
# ============================================================================


class Breadcrumb(BaseModel):
    """One breadcrumb step."""

    name: str
    item: str


class SeoUrlEntryUpsert(BaseModel):
    """Full written state of an entry, keyed by (locale, path)."""

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    locale: str = Field(..., min_length=2, max_length=10)
    path: str = Field(..., min_length=1, max_length=500)
    type: SeoUrlType
    canonical_url: str | None = Field(default=None, max_length=2000)
    is_indexable: bool = True
    include_in_sitemap: bool = True
    sitemap_priority: float = Field(default=0.5, ge=0.0, le=1.0)
    sitemap_changefreq: ChangeFrequency = ChangeFrequency.WEEKLY
    lastmod: datetime | None = None

    title: str | None = Field(default=None, max_length=255)
    meta_description: str | None = None
    og_image: str | None = Field(default=None, max_length=2000)
    breadcrumbs: list[Breadcrumb] | None = None

    structured_data_type: str | None = Field(default=None, max_length=50)
    structured_data_payload: dict[str, Any] | None = None

    content_data: dict[str, list[int]] | None = None
    content_templates: dict[str, str] | None = None
    route_params: dict[str, Any] | None = None
    extra_meta: dict[str, Any] | None = None

    redirect_type: RedirectType = RedirectType.NONE
    redirect_target: str | None = Field(default=None, max_length=2000)
    redirect_reason: str | None = Field(default=None, max_length=100)

    @field_validator("path")
    @classmethod
    def normalize_path(cls, v: str) -> str:
        v = v.strip()
        return v if v.startswith("/") else f"/{v}"


class SeoUrlEntryResponse(BaseModel):
    """Schema for URL entry response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    locale: str
    path: str
    type: str
    canonical_url: str | None = None
    is_indexable: bool
    include_in_sitemap: bool
    sitemap_priority: float
    sitemap_changefreq: str
    lastmod: datetime | None = None
    title: str | None = None
    meta_description: str | None = None
    og_image: str | None = None
    redirect_type: str
    redirect_target: str | None = None
    status: str
    robots_meta: str


# ============================================================================
# Redirect Schemas
# ============================================================================


class UrlRedirectCreate(BaseModel):
    """Schema for creating an explicit redirect."""

    old_path: str = Field(..., min_length=1, max_length=500)
    new_path: str = Field(..., min_length=1, max_length=2000)
    status_code: int = Field(default=301)
    is_active: bool = True

    @field_validator("status_code")
    @classmethod
    def validate_status_code(cls, v: int) -> int:
        if v not in EXPLICIT_REDIRECT_CODES:
            raise ValueError("Redirect status must be 301, 302, 307, or 308")
        return v


class UrlRedirectResponse(BaseModel):
    """Schema for explicit redirect response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tenant_id: UUID
    old_path: str
    new_path: str
    status_code: int
    is_active: bool
    redirected_at: datetime | None = None


class PageMetaResponse(BaseModel):
    """Head metadata for a page that serves content."""

    title: str | None = None
    description: str | None = None
    og_image: str | None = None
    canonical_url: str | None = None
    robots: str = "index, follow"
    structured_data: dict[str, Any] | None = None
    breadcrumbs: dict[str, Any] | None = None


class PathResolutionResponse(BaseModel):
    """Public answer to 'what does this path serve?'."""

    kind: Literal["content", "redirect", "not_found"]
    status_code: int
    location: str | None = None
    source: Literal["explicit", "embedded"] | None = None
    meta: PageMetaResponse | None = None
    entry: SeoUrlEntryResponse | None = None


# ============================================================================
# Sitemap Schemas
# ============================================================================


class SitemapFileResult(BaseModel):
    """One written (or projected) sitemap file."""

    filename: str
    url_count: int
    public_url: str | None = None


class SitemapGenerationResult(BaseModel):
    """Outcome of one tenant/type generation run."""

    tenant_id: UUID
    sitemap_type: str
    dry_run: bool = False
    skipped: bool = False
    files: list[SitemapFileResult] = Field(default_factory=list)
    index_file: str | None = None
    removed_files: list[str] = Field(default_factory=list)

    @property
    def total_urls(self) -> int:
        return sum(f.url_count for f in self.files)


# ============================================================================
# Robots Schemas
# ============================================================================


class UserAgentRule(BaseModel):
    """Directives for one user agent."""

    allow: list[str] = Field(default_factory=list)
    disallow: list[str] = Field(default_factory=list)
    crawl_delay: float | None = None


class RobotsConfigUpdate(BaseModel):
    """Schema for saving a robots config for a locale."""

    is_active: bool = True
    user_agent_rules: dict[str, UserAgentRule] = Field(default_factory=dict)
    custom_rules: str | None = None
    host_directive: str | None = Field(default=None, max_length=255)
    sitemap_urls: list[str] = Field(default_factory=list)
    include_sitemap_index: bool = True
    include_sitemap_files: bool = True
    notes: str | None = None


class RobotsPublishResult(BaseModel):
    """Outcome of compiling and writing robots.txt."""

    tenant_id: UUID
    locale: str
    path: str
    content: str
    warnings: list[str] = Field(default_factory=list)
    generated_at: datetime


# ============================================================================
# Content Events
# ============================================================================


class ContentEvent(BaseModel):
    """Notification from a content publisher (vehicles, blog, pages)."""

    kind: Literal["published", "updated", "slug_changed"]
    tenant_id: UUID
    entry: SeoUrlEntryUpsert
    old_path: str | None = None
    reason: str = "slug_changed"
    occurred_at: datetime | None = None
