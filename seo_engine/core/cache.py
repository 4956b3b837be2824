"""Cache port and its Redis / in-process implementations.

Components receive a ``CacheStore`` explicitly instead of reaching for a
global client, so tests and single-process batch runs can use the in-memory
store while the API uses Redis.
"""

import fnmatch
import time
from typing import Protocol

from redis.asyncio import Redis

from seo_engine.core.redis import get_redis_client


class CacheStore(Protocol):
    """Minimal key/value cache with TTL."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl: int = 300) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_pattern(self, pattern: str) -> int: ...


class RedisCacheStore:
    """Cache store backed by Redis.

    Usage:
        cache = RedisCacheStore(redis_client)

        tenant_id = await cache.get("tenant:subdomain:omega")
        if tenant_id is None:
            tenant = await lookup()
            await cache.set("tenant:subdomain:omega", str(tenant.id), ttl=300)
    """

    def __init__(self, redis_client: Redis):
        self.redis = redis_client

    async def get(self, key: str) -> str | None:
        """Get value from cache."""
        return await self.redis.get(f"cache:{key}")

    async def set(
        self,
        key: str,
        value: str,
        ttl: int = 300,
    ) -> None:
        """Set value in cache with TTL."""
        await self.redis.setex(f"cache:{key}", ttl, value)

    async def delete(self, key: str) -> None:
        """Delete value from cache."""
        await self.redis.delete(f"cache:{key}")

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern.

        Returns:
            Number of keys deleted
        """
        keys = []

        async for key in self.redis.scan_iter(match=f"cache:{pattern}"):
            keys.append(key)

        if keys:
            return await self.redis.delete(*keys)

        return 0


class MemoryCacheStore:
    """Process-local cache store with TTL expiry."""

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        item = self._data.get(key)
        if item is None:
            return None

        value, expires_at = item
        if expires_at <= time.monotonic():
            del self._data[key]
            return None

        return value

    async def set(self, key: str, value: str, ttl: int = 300) -> None:
        self._data[key] = (value, time.monotonic() + ttl)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        matched = [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]
        for key in matched:
            del self._data[key]
        return len(matched)


_memory_cache = MemoryCacheStore()


def get_cache_store() -> CacheStore:
    """FastAPI dependency returning Redis cache when connected, memory otherwise."""
    client = get_redis_client()
    if client is None:
        return _memory_cache
    return RedisCacheStore(client)
