"""Chunked sitemap generation.

Files are written per tenant under ``sitemaps/{tenant_id}/``:

* ``sitemap-vehicles-{n}.xml`` and ``sitemap-images-{n}.xml``, chunked at
  ``settings.sitemap_url_limit`` URLs per file;
* ``sitemap-pages.xml``, always a single file;
* ``sitemap-index.xml``, listing the chunk files present after the run.
"""

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from xml.sax.saxutils import escape

from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.config import settings
from seo_engine.core.exceptions import InvalidSitemapTypeError
from seo_engine.core.logging import get_logger
from seo_engine.core.storage import FileStore
from seo_engine.modules.seo.models import PAGE_URL_TYPES, SeoUrlEntry, SeoUrlType, SitemapType
from seo_engine.modules.seo.registry import UrlRegistryService
from seo_engine.modules.seo.schemas import SitemapFileResult, SitemapGenerationResult
from seo_engine.modules.tenants.models import Tenant

logger = get_logger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"
XML_HEADER = '<?xml version="1.0" encoding="UTF-8"?>\n'

INDEX_FILENAME = "sitemap-index.xml"
PAGES_FILENAME = "sitemap-pages.xml"

CHUNKED_TYPES = (SitemapType.VEHICLES.value, SitemapType.IMAGES.value)
CONTENT_TYPES = (
    SitemapType.VEHICLES.value,
    SitemapType.IMAGES.value,
    SitemapType.PAGES.value,
)
GENERATABLE_TYPES = (*CONTENT_TYPES, SitemapType.INDEX.value, "all")

DEFAULT_PRIORITY = 0.5
DEFAULT_CHANGEFREQ = "weekly"


def sitemap_dir(tenant_id: object) -> str:
    return f"sitemaps/{tenant_id}"


def chunk_filename(sitemap_type: str, number: int) -> str:
    return f"sitemap-{sitemap_type}-{number}.xml"


def primary_filename(sitemap_type: str) -> str:
    """File whose age decides whether a sitemap type is due."""
    if sitemap_type == SitemapType.INDEX.value:
        return INDEX_FILENAME
    if sitemap_type == SitemapType.PAGES.value:
        return PAGES_FILENAME
    return chunk_filename(sitemap_type, 1)


def sitemap_public_url(base_url: str, tenant_id: object, filename: str) -> str:
    """Absolute URL a crawler fetches a sitemap file from."""
    return f"{base_url.rstrip('/')}{settings.sitemap_public_prefix}/sitemaps/{tenant_id}/{filename}"


def format_lastmod(value: datetime) -> str:
    """ISO-8601 UTC, e.g. 2024-05-01T12:00:00Z. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def chunked(items: Sequence, size: int) -> Iterator[Sequence]:
    """Consecutive slices of at most size items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


@dataclass(frozen=True)
class SitemapUrl:
    """One <url> element."""

    loc: str
    lastmod: str
    priority: float | None = None
    changefreq: str | None = None
    image: str | None = None

    @classmethod
    def from_entry(cls, entry: SeoUrlEntry, base_url: str, now: datetime) -> "SitemapUrl":
        return cls(
            loc=f"{base_url.rstrip('/')}{entry.path}",
            lastmod=format_lastmod(entry.lastmod or now),
            priority=entry.sitemap_priority if entry.sitemap_priority is not None else DEFAULT_PRIORITY,
            changefreq=entry.sitemap_changefreq or DEFAULT_CHANGEFREQ,
        )

    @classmethod
    def image_from_entry(cls, entry: SeoUrlEntry, base_url: str, now: datetime) -> "SitemapUrl":
        return cls(
            loc=f"{base_url.rstrip('/')}{entry.path}",
            lastmod=format_lastmod(entry.lastmod or now),
            image=entry.og_image,
        )


def render_urlset(urls: Iterable[SitemapUrl], with_images: bool = False) -> str:
    """Serialize a <urlset> document."""
    namespaces = f'xmlns="{SITEMAP_NS}"'
    if with_images:
        namespaces += f' xmlns:image="{IMAGE_NS}"'

    parts = [XML_HEADER, f"<urlset {namespaces}>\n"]
    for url in urls:
        parts.append("  <url>\n")
        parts.append(f"    <loc>{escape(url.loc)}</loc>\n")
        parts.append(f"    <lastmod>{url.lastmod}</lastmod>\n")
        if url.priority is not None:
            parts.append(f"    <priority>{url.priority:g}</priority>\n")
        if url.changefreq is not None:
            parts.append(f"    <changefreq>{url.changefreq}</changefreq>\n")
        if url.image:
            parts.append("    <image:image>\n")
            parts.append(f"      <image:loc>{escape(url.image)}</image:loc>\n")
            parts.append("    </image:image>\n")
        parts.append("  </url>\n")
    parts.append("</urlset>\n")
    return "".join(parts)


def render_index(locations: Iterable[str], lastmod: datetime) -> str:
    """Serialize a <sitemapindex>; every child carries the generation time."""
    stamp = format_lastmod(lastmod)
    parts = [XML_HEADER, f'<sitemapindex xmlns="{SITEMAP_NS}">\n']
    for loc in locations:
        parts.append("  <sitemap>\n")
        parts.append(f"    <loc>{escape(loc)}</loc>\n")
        parts.append(f"    <lastmod>{stamp}</lastmod>\n")
        parts.append("  </sitemap>\n")
    parts.append("</sitemapindex>\n")
    return "".join(parts)


class SitemapGenerator:
    """Builds one tenant's sitemap files from the URL registry.

    Usage:
        generator = SitemapGenerator(db, LocalFileStore())
        result = await generator.generate(tenant, "all")
    """

    def __init__(
        self,
        db: AsyncSession,
        store: FileStore,
        limit: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.registry = UrlRegistryService(db)
        self.store = store
        self.limit = limit or settings.sitemap_url_limit
        self._clock = clock or (lambda: datetime.now(UTC))

    async def generate(
        self,
        tenant: Tenant,
        sitemap_type: str = "all",
        dry_run: bool = False,
    ) -> SitemapGenerationResult:
        """Generate one type (or all) for a tenant and refresh the index."""
        if sitemap_type not in GENERATABLE_TYPES:
            raise InvalidSitemapTypeError(sitemap_type, list(GENERATABLE_TYPES))

        now = self._clock()
        result = SitemapGenerationResult(
            tenant_id=tenant.id, sitemap_type=sitemap_type, dry_run=dry_run
        )

        if sitemap_type == "all":
            content_types = list(CONTENT_TYPES)
        elif sitemap_type == SitemapType.INDEX.value:
            content_types = []
        else:
            content_types = [sitemap_type]

        for content_type in content_types:
            files, removed = await self._generate_type(tenant, content_type, now, dry_run)
            result.files.extend(files)
            result.removed_files.extend(removed)

        if dry_run:
            index_files = [f.filename for f in result.files]
        else:
            index_files = await self.stored_files(tenant.id)
            await self._write_index(tenant, index_files, now)
            result.index_file = f"{sitemap_dir(tenant.id)}/{INDEX_FILENAME}"

        logger.info(
            "sitemaps_generated",
            tenant_id=str(tenant.id),
            sitemap_type=sitemap_type,
            files=len(result.files),
            urls=result.total_urls,
            indexed_files=len(index_files),
            dry_run=dry_run,
        )
        return result

    async def stored_files(self, tenant_id: object) -> list[str]:
        """Names of the chunk files currently in storage for a tenant."""
        paths = await self.store.list(sitemap_dir(tenant_id), "sitemap-*.xml")
        names = [path.rsplit("/", 1)[-1] for path in paths]
        return [name for name in names if name != INDEX_FILENAME]

    async def _select_urls(
        self, tenant: Tenant, sitemap_type: str, now: datetime
    ) -> list[SitemapUrl]:
        base_url = tenant.base_url

        if sitemap_type == SitemapType.VEHICLES.value:
            entries = await self.registry.list_sitemap_entries(
                tenant.id, [SeoUrlType.VEHICLE_DETAIL.value]
            )
            return [SitemapUrl.from_entry(e, base_url, now) for e in entries]

        if sitemap_type == SitemapType.IMAGES.value:
            entries = await self.registry.list_sitemap_entries(
                tenant.id, [SeoUrlType.VEHICLE_DETAIL.value], require_image=True
            )
            return [SitemapUrl.image_from_entry(e, base_url, now) for e in entries if e.og_image]

        entries = await self.registry.list_sitemap_entries(tenant.id, PAGE_URL_TYPES)
        return [SitemapUrl.from_entry(e, base_url, now) for e in entries]

    async def _generate_type(
        self,
        tenant: Tenant,
        sitemap_type: str,
        now: datetime,
        dry_run: bool,
    ) -> tuple[list[SitemapFileResult], list[str]]:
        urls = await self._select_urls(tenant, sitemap_type, now)
        directory = sitemap_dir(tenant.id)
        with_images = sitemap_type == SitemapType.IMAGES.value

        if sitemap_type in CHUNKED_TYPES:
            documents = [
                (chunk_filename(sitemap_type, number), chunk)
                for number, chunk in enumerate(chunked(urls, self.limit), start=1)
            ]
        else:
            documents = [(PAGES_FILENAME, urls)]

        files = [
            SitemapFileResult(
                filename=filename,
                url_count=len(chunk),
                public_url=sitemap_public_url(tenant.base_url, tenant.id, filename),
            )
            for filename, chunk in documents
        ]

        if dry_run:
            return files, []

        for filename, chunk in documents:
            await self.store.write_text(
                f"{directory}/{filename}", render_urlset(chunk, with_images=with_images)
            )
            logger.debug(
                "sitemap_file_written",
                tenant_id=str(tenant.id),
                file=filename,
                urls=len(chunk),
            )

        removed = []
        if sitemap_type in CHUNKED_TYPES:
            written = {filename for filename, _ in documents}
            for path in await self.store.list(directory, f"sitemap-{sitemap_type}-*.xml"):
                if path.rsplit("/", 1)[-1] not in written:
                    await self.store.delete(path)
                    removed.append(path)

        return files, removed

    async def _write_index(self, tenant: Tenant, filenames: Sequence[str], now: datetime) -> None:
        locations = [sitemap_public_url(tenant.base_url, tenant.id, name) for name in filenames]
        await self.store.write_text(
            f"{sitemap_dir(tenant.id)}/{INDEX_FILENAME}", render_index(locations, now)
        )
