"""Public routes for path resolution and generated artifacts."""

import re

from fastapi import APIRouter, Query, Response
from fastapi.responses import PlainTextResponse

from seo_engine.core.dependencies import DBSession, Locale, RequestTenant, Storage
from seo_engine.core.exceptions import FileNotFoundInStorageError
from seo_engine.core.logging import get_logger
from seo_engine.modules.seo.models import RobotsConfig
from seo_engine.modules.seo.redirects import PathResolver, RedirectService
from seo_engine.modules.seo.robots import RobotsService, generate_robots_content
from seo_engine.modules.seo.schemas import PathResolutionResponse, SeoUrlEntryResponse
from seo_engine.modules.seo.sitemap import sitemap_dir
from seo_engine.modules.seo.structured_data import build_page_meta

logger = get_logger(__name__)

SITEMAP_FILENAME = re.compile(r"^sitemap-[a-z0-9-]+\.xml$")

# Mounted under settings.api_prefix
router = APIRouter()

# Mounted at the site root, where crawlers look
artifacts_router = APIRouter()


# ============================================================================
# Path Resolution
# ============================================================================


@router.get(
    "/public/seo/resolve",
    response_model=PathResolutionResponse,
    summary="Resolve a path to content or a redirect",
    tags=["Public - SEO"],
)
async def resolve_path(
    tenant: RequestTenant,
    locale: Locale,
    db: DBSession,
    path: str = Query(..., min_length=1, max_length=500, description="Page path"),
) -> PathResolutionResponse:
    """Tell the portal frontend what a path serves.

    Unknown paths answer 200 with kind 'not_found' so the frontend can render
    its own 404 page.
    """
    if not path.startswith("/"):
        path = f"/{path}"

    resolution = await PathResolver(db).resolve(tenant.id, locale.locale, path)

    if resolution.explicit_redirect is not None:
        await RedirectService(db).mark_redirected(resolution.explicit_redirect)

    response = PathResolutionResponse(
        kind=resolution.kind,
        status_code=resolution.status_code,
        location=resolution.location,
        source=resolution.source,
    )
    if resolution.kind == "content" and resolution.entry is not None:
        response.meta = build_page_meta(resolution.entry, tenant.base_url)
        response.entry = SeoUrlEntryResponse.model_validate(resolution.entry)

    return response


# ============================================================================
# Artifacts
# ============================================================================


@artifacts_router.get(
    "/sitemaps/{filename}",
    summary="Get a sitemap file",
    tags=["Public - SEO"],
    response_class=Response,
)
async def get_sitemap(filename: str, tenant: RequestTenant, store: Storage) -> Response:
    """Serve a generated sitemap file of the request's tenant."""
    path = f"{sitemap_dir(tenant.id)}/{filename}"
    if not SITEMAP_FILENAME.match(filename):
        raise FileNotFoundInStorageError(filename)

    content = await store.read_text(path)
    if content is None:
        raise FileNotFoundInStorageError(filename)

    return Response(content=content, media_type="application/xml")


@artifacts_router.get(
    "/robots.txt",
    summary="Get robots.txt",
    tags=["Public - SEO"],
    response_class=PlainTextResponse,
)
async def get_robots(
    tenant: RequestTenant,
    locale: Locale,
    db: DBSession,
    store: Storage,
) -> PlainTextResponse:
    """Serve the published robots.txt.

    Before the first publish, the config (or the default rules) is compiled
    on the fly without writing anything.
    """
    service = RobotsService(db, store)
    content = await service.read(tenant.id, locale.locale)

    if content is None:
        config = await service.get_config(tenant.id, locale.locale)
        if config is None or not config.is_active:
            config = RobotsConfig.default_for(tenant.id, locale.locale)
        content = generate_robots_content(config, tenant.base_url)
        logger.debug("robots_compiled_on_request", tenant_id=str(tenant.id), locale=locale.locale)

    return PlainTextResponse(content)
