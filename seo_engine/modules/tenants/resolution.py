"""Tenant identification as an ordered chain of strategies.

Each strategy looks at one part of the request (host subdomain, custom
domain, explicit header, Origin/Referer, bearer token). The resolver tries
them in order and the first hit wins. Hits are cached for a few minutes and
must be invalidated when a tenant's addressing fields change.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit
from uuid import UUID

from fastapi import Request
from jose import JWTError, jwt

from seo_engine.config import settings
from seo_engine.core.cache import CacheStore
from seo_engine.core.logging import get_logger
from seo_engine.modules.tenants.models import Tenant

logger = get_logger(__name__)

# Second labels that make a two-label host like 'demo.localhost' carry a subdomain
DEV_SECOND_LABELS = {"localhost", "127", "local", "test", "dev"}
RESERVED_SUBDOMAINS = {"www", "api"}


class TenantLookup(Protocol):
    async def find_by_id(self, tenant_id: UUID) -> Tenant | None: ...

    async def find_by_subdomain(self, subdomain: str) -> Tenant | None: ...

    async def find_by_domain(self, domain: str) -> Tenant | None: ...


@dataclass(frozen=True)
class RequestContext:
    """The request attributes tenant identification may look at."""

    host: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    bearer_token: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        headers = {k.lower(): v for k, v in request.headers.items()}
        token = None
        auth = headers.get("authorization", "")
        if auth.lower().startswith("bearer "):
            token = auth[7:].strip() or None
        return cls(host=request.url.hostname or "", headers=headers, bearer_token=token)

    def header(self, name: str) -> str | None:
        value = self.headers.get(name.lower())
        return value.strip() if value and value.strip() else None


def normalize_host(host: str) -> str:
    """Lowercase, drop the port and a leading 'www.'."""
    host = host.strip().lower().split(":", 1)[0]
    if host.startswith("www."):
        host = host[4:]
    return host


def extract_subdomain(host: str) -> str | None:
    """Return the tenant subdomain label of a host, if it has one."""
    parts = normalize_host(host).split(".")
    if len(parts) < 2 or not parts[0]:
        return None

    if parts[1] in DEV_SECOND_LABELS or len(parts) >= 3:
        subdomain = parts[0]
        if subdomain not in RESERVED_SUBDOMAINS:
            return subdomain

    return None


class TenantStrategy(ABC):
    """One way of identifying the tenant of a request."""

    name: str = "strategy"
    cacheable: bool = True

    def __init__(self, lookup: TenantLookup) -> None:
        self.lookup = lookup

    @abstractmethod
    def cache_key(self, context: RequestContext) -> str | None:
        """Cache key for this request, or None when the strategy does not apply."""

    @abstractmethod
    async def find(self, context: RequestContext) -> Tenant | None:
        """Look the tenant up without the cache."""


class SubdomainStrategy(TenantStrategy):
    name = "subdomain"

    def cache_key(self, context: RequestContext) -> str | None:
        subdomain = extract_subdomain(context.host)
        return f"tenant:subdomain:{subdomain}" if subdomain else None

    async def find(self, context: RequestContext) -> Tenant | None:
        subdomain = extract_subdomain(context.host)
        return await self.lookup.find_by_subdomain(subdomain) if subdomain else None


class CustomDomainStrategy(TenantStrategy):
    name = "custom_domain"

    def cache_key(self, context: RequestContext) -> str | None:
        host = normalize_host(context.host)
        return f"tenant:domain:{host}" if host else None

    async def find(self, context: RequestContext) -> Tenant | None:
        host = normalize_host(context.host)
        return await self.lookup.find_by_domain(host) if host else None


class HeaderStrategy(TenantStrategy):
    """Explicit subdomain header sent by the portal frontends."""

    name = "header"

    def __init__(self, lookup: TenantLookup, header_name: str | None = None) -> None:
        super().__init__(lookup)
        self.header_name = header_name or settings.tenant_header

    def cache_key(self, context: RequestContext) -> str | None:
        value = context.header(self.header_name)
        return f"tenant:subdomain:{value.lower()}" if value else None

    async def find(self, context: RequestContext) -> Tenant | None:
        value = context.header(self.header_name)
        return await self.lookup.find_by_subdomain(value) if value else None


class OriginStrategy(TenantStrategy):
    """Host of the Origin header, falling back to the Referer."""

    name = "origin"

    @staticmethod
    def _origin_host(context: RequestContext) -> str | None:
        for header in ("origin", "referer"):
            value = context.header(header)
            if value:
                host = urlsplit(value).hostname
                if host:
                    return normalize_host(host)
        return None

    def cache_key(self, context: RequestContext) -> str | None:
        host = self._origin_host(context)
        return f"tenant:host:{host}" if host else None

    async def find(self, context: RequestContext) -> Tenant | None:
        host = self._origin_host(context)
        if not host:
            return None

        subdomain = extract_subdomain(host)
        if subdomain:
            tenant = await self.lookup.find_by_subdomain(subdomain)
            if tenant:
                return tenant

        return await self.lookup.find_by_domain(host)


class TokenStrategy(TenantStrategy):
    """tenant_id claim of an authenticated user's bearer token."""

    name = "auth_token"
    cacheable = False

    def cache_key(self, context: RequestContext) -> str | None:
        return "tenant:token" if context.bearer_token else None

    async def find(self, context: RequestContext) -> Tenant | None:
        if not context.bearer_token:
            return None

        try:
            payload = jwt.decode(
                context.bearer_token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
            tenant_id = UUID(str(payload["tenant_id"]))
        except (JWTError, KeyError, ValueError) as e:
            logger.debug("tenant_token_rejected", error=str(e))
            return None

        return await self.lookup.find_by_id(tenant_id)


def default_strategies(lookup: TenantLookup) -> list[TenantStrategy]:
    """Strategies in precedence order."""
    return [
        SubdomainStrategy(lookup),
        CustomDomainStrategy(lookup),
        HeaderStrategy(lookup),
        OriginStrategy(lookup),
        TokenStrategy(lookup),
    ]


class TenantResolver:
    """Tries strategies in sequence; first success wins.

    Usage:
        resolver = TenantResolver(default_strategies(TenantService(db)), cache)
        tenant_id = await resolver.resolve(RequestContext.from_request(request))
    """

    def __init__(
        self,
        strategies: Sequence[TenantStrategy],
        cache: CacheStore,
        ttl_seconds: int | None = None,
    ) -> None:
        self.strategies = list(strategies)
        self.cache = cache
        self.ttl_seconds = ttl_seconds or settings.tenant_cache_ttl_seconds

    async def resolve(self, context: RequestContext) -> UUID | None:
        for strategy in self.strategies:
            key = strategy.cache_key(context)
            if key is None:
                continue

            if strategy.cacheable:
                cached = await self.cache.get(key)
                if cached:
                    return UUID(cached)

            tenant = await strategy.find(context)
            if tenant is None:
                continue

            if strategy.cacheable:
                await self.cache.set(key, str(tenant.id), ttl=self.ttl_seconds)

            logger.debug("tenant_identified", strategy=strategy.name, tenant_id=str(tenant.id))
            return tenant.id

        logger.info("tenant_not_identified", host=context.host)
        return None


async def invalidate_tenant(cache: CacheStore, tenant: Tenant) -> None:
    """Drop cached resolutions that may point at this tenant.

    Call after changing a tenant's subdomain, domain or active flag. Pass the
    pre-change values as well if the addressing fields were edited.
    """
    await cache.delete(f"tenant:subdomain:{tenant.subdomain.lower()}")
    await cache.delete_pattern(f"tenant:host:{tenant.subdomain.lower()}.*")

    if tenant.custom_domain:
        domain = normalize_host(tenant.custom_domain)
        await cache.delete(f"tenant:domain:{domain}")
        await cache.delete(f"tenant:host:{domain}")

    logger.info("tenant_cache_invalidated", tenant_id=str(tenant.id))
