"""robots.txt compilation and publishing."""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.core.database import transactional
from seo_engine.core.exceptions import ValidationError
from seo_engine.core.logging import get_logger
from seo_engine.core.storage import FileStore
from seo_engine.modules.seo.models import RobotsConfig, SitemapType
from seo_engine.modules.seo.schemas import RobotsConfigUpdate, RobotsPublishResult
from seo_engine.modules.seo.sitemap import INDEX_FILENAME, primary_filename, sitemap_public_url
from seo_engine.modules.tenants.models import Tenant

logger = get_logger(__name__)

# Sitemap types advertised one URL each when include_sitemap_files is set
ADVERTISED_SITEMAP_TYPES = (
    SitemapType.VEHICLES.value,
    SitemapType.IMAGES.value,
    SitemapType.PAGES.value,
)

_http_url = TypeAdapter(AnyHttpUrl)


def robots_path(tenant_id: object, locale: str) -> str:
    return f"robots/{tenant_id}/{locale}/robots.txt"


def _format_delay(value: Any) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def sitemap_urls_for(config: RobotsConfig, base_url: str) -> list[str]:
    """Sitemap URLs a config advertises, explicit ones first."""
    urls = list(config.sitemap_urls or [])

    if config.include_sitemap_index:
        urls.append(sitemap_public_url(base_url, config.tenant_id, INDEX_FILENAME))

    if config.include_sitemap_files:
        for sitemap_type in ADVERTISED_SITEMAP_TYPES:
            urls.append(
                sitemap_public_url(base_url, config.tenant_id, primary_filename(sitemap_type))
            )

    return urls


def generate_robots_content(config: RobotsConfig, base_url: str) -> str:
    """Compile a config into robots.txt text.

    Order: Host, one block per user agent, custom rules, Sitemap lines.
    """
    lines: list[str] = []

    if config.host_directive:
        lines.append(f"Host: {config.host_directive}")
        lines.append("")

    rules = config.user_agent_rules or {"*": {}}
    for user_agent, agent_rules in rules.items():
        agent_rules = agent_rules or {}
        lines.append(f"User-agent: {user_agent}")
        for path in agent_rules.get("allow") or []:
            lines.append(f"Allow: {path}")
        for path in agent_rules.get("disallow") or []:
            lines.append(f"Disallow: {path}")
        if agent_rules.get("crawl_delay"):
            lines.append(f"Crawl-delay: {_format_delay(agent_rules['crawl_delay'])}")
        lines.append("")

    if config.custom_rules:
        lines.append(config.custom_rules.rstrip("\n"))
        lines.append("")

    for url in sitemap_urls_for(config, base_url):
        lines.append(f"Sitemap: {url}")

    return "\n".join(lines) + "\n"


def validate_robots_config(config: RobotsConfig) -> list[str]:
    """Check a config before it is saved or published.

    Raises:
        ValidationError: negative crawl delay or malformed sitemap URL

    Returns:
        Warnings that do not block publishing
    """
    errors: list[dict[str, Any]] = []

    for user_agent, agent_rules in (config.user_agent_rules or {}).items():
        delay = (agent_rules or {}).get("crawl_delay")
        if delay is None:
            continue
        try:
            negative = float(delay) < 0
        except (TypeError, ValueError):
            negative = True
        if negative:
            errors.append(
                {
                    "field": f"user_agent_rules.{user_agent}.crawl_delay",
                    "value": delay,
                    "message": "Crawl delay must be a non-negative number",
                }
            )

    for url in config.sitemap_urls or []:
        try:
            _http_url.validate_python(url)
        except PydanticValidationError:
            errors.append(
                {"field": "sitemap_urls", "value": url, "message": "Invalid sitemap URL"}
            )

    if errors:
        raise ValidationError("Invalid robots configuration", errors=errors)

    warnings = []
    if not config.sitemap_urls and not config.include_sitemap_index and not config.include_sitemap_files:
        warnings.append("At least one sitemap should be advertised")
    return warnings


class RobotsService:
    """Stores robots configs and publishes the compiled file."""

    def __init__(
        self,
        db: AsyncSession,
        store: FileStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.db = db
        self.store = store
        self._clock = clock or (lambda: datetime.now(UTC))

    async def get_config(self, tenant_id: UUID, locale: str) -> RobotsConfig | None:
        """Get robots config by tenant and locale."""
        stmt = (
            select(RobotsConfig)
            .where(RobotsConfig.tenant_id == tenant_id)
            .where(RobotsConfig.locale == locale)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    @transactional
    async def save(self, tenant_id: UUID, locale: str, data: RobotsConfigUpdate) -> RobotsConfig:
        """Validate and store the config for (tenant, locale)."""
        values = data.model_dump()

        config = await self.get_config(tenant_id, locale)
        if config is None:
            config = RobotsConfig(tenant_id=tenant_id, locale=locale, **values)
            self.db.add(config)
        else:
            for field, value in values.items():
                setattr(config, field, value)

        warnings = validate_robots_config(config)
        await self.db.flush()

        logger.info(
            "robots_config_saved",
            tenant_id=str(tenant_id),
            locale=locale,
            warnings=warnings,
        )
        return config

    @transactional
    async def publish(
        self,
        tenant: Tenant,
        locale: str,
        generated_by: str = "system",
    ) -> RobotsPublishResult:
        """Compile the tenant's config and write robots.txt.

        A tenant without a config gets the default rules, which are saved.
        An inactive config publishes the defaults without touching the row.
        """
        config = await self.get_config(tenant.id, locale)
        if config is None:
            config = RobotsConfig.default_for(tenant.id, locale)
            self.db.add(config)
            source = config
        elif not config.is_active:
            source = RobotsConfig.default_for(tenant.id, locale)
        else:
            source = config

        warnings = validate_robots_config(source)
        content = generate_robots_content(source, tenant.base_url)
        path = robots_path(tenant.id, locale)
        await self.store.write_text(path, content)

        generated_at = self._clock()
        if config.is_active:
            config.last_generated_at = generated_at
            config.last_generated_by = generated_by
        await self.db.flush()

        logger.info(
            "robots_published",
            tenant_id=str(tenant.id),
            locale=locale,
            path=path,
            generated_by=generated_by,
        )
        return RobotsPublishResult(
            tenant_id=tenant.id,
            locale=locale,
            path=path,
            content=content,
            warnings=warnings,
            generated_at=generated_at,
        )

    async def read(self, tenant_id: UUID, locale: str) -> str | None:
        """Published robots.txt text, if any."""
        return await self.store.read_text(robots_path(tenant_id, locale))
