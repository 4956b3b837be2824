"""Shared setup for the batch commands."""

import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from uuid import UUID

from seo_engine.core.database import close_db
from seo_engine.core.locks import LockManager, get_lock_manager
from seo_engine.core.logging import get_logger, setup_logging
from seo_engine.core.redis import close_redis, init_redis
from seo_engine.modules.seo.jobs import JobReport

logger = get_logger(__name__)


def parse_tenant_id(value: str | None) -> UUID | None:
    """Parse --tenant-id, exiting with status 2 on a malformed UUID."""
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        print(f"❌ Error: Invalid tenant_id format: {value}")
        sys.exit(2)


@asynccontextmanager
async def batch_runtime() -> AsyncGenerator[LockManager, None]:
    """Logging, Redis and DB lifecycle around one command run.

    Yields the lock manager: Redis locks when Redis is reachable, the
    in-process lock set otherwise.
    """
    setup_logging()
    try:
        await init_redis()
    except Exception as e:
        logger.warning("redis_unavailable_using_local_locks", error=str(e))

    try:
        yield get_lock_manager()
    finally:
        await close_redis()
        await close_db()


def print_report(report: JobReport) -> int:
    """Print a short summary and return the process exit code."""
    print(f"✅ Succeeded: {report.succeeded}")
    if report.skipped:
        print(f"⏭️  Skipped (locked): {len(report.skipped)}")
    for tenant_id, error in report.failed.items():
        print(f"❌ Tenant {tenant_id}: {error}")
    return 1 if report.failed else 0
