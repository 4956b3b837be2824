"""Non-blocking generation locks keyed by (tenant, artifact type).

A run that finds the lock held skips its work rather than waiting, so two
schedulers firing at once never write the same sitemap file concurrently.
"""

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import LockError

from seo_engine.config import settings
from seo_engine.core.logging import get_logger
from seo_engine.core.redis import get_redis_client

logger = get_logger(__name__)


def generation_lock_key(tenant_id: object, artifact_type: str) -> str:
    """Build the lock key for one tenant's artifact type."""
    return f"generation:{tenant_id}:{artifact_type}"


class LockManager(Protocol):
    """Hands out try-once locks.

    ``hold`` yields True when the lock was acquired and False when another
    holder has it; the lock is released on exit only if it was acquired.
    """

    def hold(self, key: str) -> AbstractAsyncContextManager[bool]: ...


class RedisLockManager:
    """Distributed locks using redis-py's Lock with an expiry.

    The TTL bounds how long a crashed worker can keep a tenant locked.
    """

    def __init__(self, redis_client: Redis, ttl_seconds: int | None = None) -> None:
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds or settings.generation_lock_ttl_seconds

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[bool]:
        lock = self.redis.lock(f"lock:{key}", timeout=self.ttl_seconds, blocking=False)
        acquired = await lock.acquire()
        try:
            yield acquired
        finally:
            if acquired:
                try:
                    await lock.release()
                except LockError:
                    # Expired mid-run and possibly taken over; nothing to release.
                    logger.warning("generation_lock_expired", key=key)


class LocalLockManager:
    """In-process lock set for single-worker runs and tests."""

    def __init__(self) -> None:
        self._held: set[str] = set()

    def is_held(self, key: str) -> bool:
        return key in self._held

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[bool]:
        if key in self._held:
            yield False
            return

        self._held.add(key)
        try:
            yield True
        finally:
            self._held.discard(key)


_local_locks = LocalLockManager()


def get_lock_manager() -> LockManager:
    """Return the Redis lock manager when connected, the local one otherwise."""
    client = get_redis_client()
    if client is None:
        return _local_locks
    return RedisLockManager(client)
