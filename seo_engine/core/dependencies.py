"""Common FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.config import settings
from seo_engine.core.cache import CacheStore, get_cache_store
from seo_engine.core.database import get_db
from seo_engine.core.exceptions import TenantNotFoundError
from seo_engine.core.storage import FileStore, get_file_store
from seo_engine.modules.tenants.models import Tenant
from seo_engine.modules.tenants.resolution import (
    RequestContext,
    TenantResolver,
    default_strategies,
)
from seo_engine.modules.tenants.service import TenantService

# Type alias for database dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]

Cache = Annotated[CacheStore, Depends(get_cache_store)]
Storage = Annotated[FileStore, Depends(get_file_store)]


class LocaleParams:
    """Locale parameter for public API."""

    def __init__(
        self,
        locale: str = Query(
            default=settings.default_locale,
            min_length=2,
            max_length=10,
            description="Locale code (e.g., 'pt-BR', 'en')",
        ),
    ) -> None:
        self.locale = locale


Locale = Annotated[LocaleParams, Depends()]


async def get_request_tenant(request: Request, db: DBSession, cache: Cache) -> Tenant:
    """Identify the tenant a public request is addressed to.

    Raises:
        TenantNotFoundError: If no strategy matches or the tenant is inactive
    """
    service = TenantService(db)
    resolver = TenantResolver(default_strategies(service), cache)

    tenant_id = await resolver.resolve(RequestContext.from_request(request))
    if tenant_id is None:
        raise TenantNotFoundError()

    return await service.get_by_id(tenant_id)


RequestTenant = Annotated[Tenant, Depends(get_request_tenant)]
