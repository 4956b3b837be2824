"""Tenant lookups used by tenant identification and the batch jobs."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from seo_engine.core.exceptions import TenantNotFoundError
from seo_engine.modules.tenants.models import Tenant


class TenantService:
    """Read-only tenant queries. Tenant CRUD lives in the management service."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_by_id(self, tenant_id: UUID) -> Tenant:
        """Get active tenant by ID."""
        tenant = await self.find_by_id(tenant_id)
        if not tenant:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def find_by_id(self, tenant_id: UUID) -> Tenant | None:
        stmt = (
            select(Tenant)
            .where(Tenant.id == tenant_id)
            .where(Tenant.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_subdomain(self, subdomain: str) -> Tenant | None:
        stmt = (
            select(Tenant)
            .where(Tenant.subdomain == subdomain.lower())
            .where(Tenant.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_domain(self, domain: str) -> Tenant | None:
        """Find by custom domain, trying the bare and the www. form."""
        domain = domain.lower()
        candidates = [domain]
        if domain.startswith("www."):
            candidates.append(domain[4:])
        else:
            candidates.append(f"www.{domain}")

        stmt = (
            select(Tenant)
            .where(Tenant.custom_domain.in_(candidates))
            .where(Tenant.is_active.is_(True))
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_active(self) -> list[Tenant]:
        """List active tenants for batch generation."""
        stmt = select(Tenant).where(Tenant.is_active.is_(True)).order_by(Tenant.created_at)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
