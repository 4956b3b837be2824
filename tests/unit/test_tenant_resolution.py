"""Unit tests for tenant identification."""

from uuid import UUID, uuid4

import pytest
from jose import jwt

from seo_engine.config import settings
from seo_engine.core.cache import MemoryCacheStore
from seo_engine.modules.tenants.models import Tenant
from seo_engine.modules.tenants.resolution import (
    RequestContext,
    TenantResolver,
    default_strategies,
    extract_subdomain,
    invalidate_tenant,
    normalize_host,
)
from tests.fixtures.factories import TenantFactory


class FakeTenantLookup:
    """In-memory TenantLookup that records every query."""

    def __init__(self, tenants: list[Tenant]) -> None:
        self.tenants = tenants
        self.calls: list[tuple[str, object]] = []

    async def find_by_id(self, tenant_id: UUID) -> Tenant | None:
        self.calls.append(("id", tenant_id))
        return next((t for t in self.tenants if t.id == tenant_id), None)

    async def find_by_subdomain(self, subdomain: str) -> Tenant | None:
        self.calls.append(("subdomain", subdomain))
        return next((t for t in self.tenants if t.subdomain == subdomain.lower()), None)

    async def find_by_domain(self, domain: str) -> Tenant | None:
        self.calls.append(("domain", domain))
        return next((t for t in self.tenants if t.custom_domain == domain), None)


@pytest.fixture
def omega() -> Tenant:
    return TenantFactory(subdomain="omega", custom_domain="omegaveiculos.com.br")


@pytest.fixture
def lookup(omega: Tenant) -> FakeTenantLookup:
    return FakeTenantLookup([omega, TenantFactory(subdomain="sigma")])


@pytest.fixture
def resolver(lookup: FakeTenantLookup, memory_cache: MemoryCacheStore) -> TenantResolver:
    return TenantResolver(default_strategies(lookup), memory_cache, ttl_seconds=60)


@pytest.mark.unit
class TestHostParsing:
    @pytest.mark.parametrize(
        ("host", "expected"),
        [
            ("omega.localhost", "omega"),
            ("Omega.Localhost:8000", "omega"),
            ("www.omega.localhost", "omega"),
            ("omega.127.0.0.1", "omega"),
            ("omega.dealers.example.com", "omega"),
            ("example.com", None),
            ("www.example.com", None),
            ("api.example.com", None),
            ("localhost", None),
            ("", None),
        ],
    )
    def test_extract_subdomain(self, host: str, expected: str | None) -> None:
        assert extract_subdomain(host) == expected

    def test_normalize_host(self) -> None:
        assert normalize_host(" WWW.OmegaVeiculos.com.br:443 ") == "omegaveiculos.com.br"


@pytest.mark.unit
class TestTenantResolver:
    @pytest.mark.asyncio
    async def test_subdomain(self, resolver: TenantResolver, omega: Tenant) -> None:
        tenant_id = await resolver.resolve(RequestContext(host="omega.localhost"))

        assert tenant_id == omega.id

    @pytest.mark.asyncio
    async def test_first_strategy_wins(
        self, resolver: TenantResolver, lookup: FakeTenantLookup, omega: Tenant
    ) -> None:
        context = RequestContext(
            host="omega.localhost",
            headers={"x-tenant-subdomain": "sigma"},
        )

        tenant_id = await resolver.resolve(context)

        assert tenant_id == omega.id
        assert lookup.calls == [("subdomain", "omega")]

    @pytest.mark.asyncio
    async def test_custom_domain(self, resolver: TenantResolver, omega: Tenant) -> None:
        tenant_id = await resolver.resolve(RequestContext(host="www.omegaveiculos.com.br"))

        assert tenant_id == omega.id

    @pytest.mark.asyncio
    async def test_header(self, resolver: TenantResolver, lookup: FakeTenantLookup) -> None:
        sigma = lookup.tenants[1]
        context = RequestContext(host="api.example.com", headers={"x-tenant-subdomain": "Sigma"})

        assert await resolver.resolve(context) == sigma.id

    @pytest.mark.asyncio
    async def test_origin_then_referer(self, resolver: TenantResolver, omega: Tenant) -> None:
        by_origin = RequestContext(
            host="api.example.com", headers={"origin": "https://omega.localhost:3000"}
        )
        by_referer = RequestContext(
            host="api.example.com",
            headers={"referer": "https://www.omegaveiculos.com.br/carro/civic"},
        )

        assert await resolver.resolve(by_origin) == omega.id
        assert await resolver.resolve(by_referer) == omega.id

    @pytest.mark.asyncio
    async def test_bearer_token(self, resolver: TenantResolver, omega: Tenant) -> None:
        token = jwt.encode(
            {"sub": str(uuid4()), "tenant_id": str(omega.id)},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert await resolver.resolve(RequestContext(bearer_token=token)) == omega.id

    @pytest.mark.asyncio
    async def test_invalid_token_ignored(self, resolver: TenantResolver, omega: Tenant) -> None:
        forged = jwt.encode({"tenant_id": str(omega.id)}, "wrong-secret", algorithm="HS256")
        no_claim = jwt.encode({"sub": "x"}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

        assert await resolver.resolve(RequestContext(bearer_token=forged)) is None
        assert await resolver.resolve(RequestContext(bearer_token=no_claim)) is None
        assert await resolver.resolve(RequestContext(bearer_token="garbage")) is None

    @pytest.mark.asyncio
    async def test_no_match(self, resolver: TenantResolver) -> None:
        assert await resolver.resolve(RequestContext(host="ghost.localhost")) is None

    @pytest.mark.asyncio
    async def test_hit_cached_and_reused(
        self,
        resolver: TenantResolver,
        lookup: FakeTenantLookup,
        memory_cache: MemoryCacheStore,
        omega: Tenant,
    ) -> None:
        context = RequestContext(host="omega.localhost")

        await resolver.resolve(context)
        lookup.calls.clear()
        tenant_id = await resolver.resolve(context)

        assert tenant_id == omega.id
        assert lookup.calls == []
        assert await memory_cache.get("tenant:subdomain:omega") == str(omega.id)

    @pytest.mark.asyncio
    async def test_miss_not_cached(
        self, resolver: TenantResolver, memory_cache: MemoryCacheStore
    ) -> None:
        await resolver.resolve(RequestContext(host="ghost.localhost"))

        assert await memory_cache.get("tenant:subdomain:ghost") is None
        assert await memory_cache.get("tenant:domain:ghost.localhost") is None

    @pytest.mark.asyncio
    async def test_token_result_not_cached(
        self, resolver: TenantResolver, memory_cache: MemoryCacheStore, omega: Tenant
    ) -> None:
        token = jwt.encode(
            {"tenant_id": str(omega.id)}, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
        )

        await resolver.resolve(RequestContext(bearer_token=token))

        assert memory_cache._data == {}

    @pytest.mark.asyncio
    async def test_invalidate_drops_cached_keys(
        self, resolver: TenantResolver, memory_cache: MemoryCacheStore, omega: Tenant
    ) -> None:
        await resolver.resolve(RequestContext(host="omega.localhost"))
        await resolver.resolve(RequestContext(host="omegaveiculos.com.br"))
        await resolver.resolve(
            RequestContext(host="api.example.com", headers={"origin": "https://omega.localhost"})
        )
        await memory_cache.set("tenant:subdomain:sigma", str(uuid4()))

        await invalidate_tenant(memory_cache, omega)

        assert await memory_cache.get("tenant:subdomain:omega") is None
        assert await memory_cache.get("tenant:domain:omegaveiculos.com.br") is None
        assert await memory_cache.get("tenant:host:omega.localhost") is None
        assert await memory_cache.get("tenant:subdomain:sigma") is not None


@pytest.mark.unit
def test_request_context_header_lookup_is_case_insensitive() -> None:
    context = RequestContext(headers={"x-tenant-subdomain": " omega "})

    assert context.header("X-Tenant-Subdomain") == "omega"
    assert context.header("Origin") is None
