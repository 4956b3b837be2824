"""Regenerate the sitemaps whose change frequency says they are due.

Meant to run from cron every few minutes. Tenants with URL entries but no
sitemap config get a default hourly vehicles config first.

Usage:
    python -m seo_engine.scripts.generate_due_sitemaps
"""

import asyncio
import sys

from seo_engine.core.database import get_db_context
from seo_engine.core.storage import get_file_store
from seo_engine.modules.seo.jobs import run_due_generation
from seo_engine.scripts._runtime import batch_runtime, print_report


async def main() -> int:
    """Main function."""
    async with batch_runtime() as locks:
        async with get_db_context() as db:
            report = await run_due_generation(db, get_file_store(), locks)

    return print_report(report)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
