"""Publish robots.txt for one tenant or all active tenants.

Usage:
    python -m seo_engine.scripts.generate_robots
    python -m seo_engine.scripts.generate_robots --tenant-id <uuid> --locale en
"""

import argparse
import asyncio
import sys

from seo_engine.config import settings
from seo_engine.core.database import get_db_context
from seo_engine.core.storage import get_file_store
from seo_engine.modules.seo.jobs import run_robots_generation
from seo_engine.scripts._runtime import batch_runtime, parse_tenant_id, print_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish tenant robots.txt files")
    parser.add_argument(
        "--tenant-id",
        type=str,
        help="Publish only for this tenant (UUID)",
    )
    parser.add_argument(
        "--locale",
        type=str,
        default=settings.default_locale,
        help="Locale of the robots config to publish",
    )
    return parser


async def main() -> int:
    """Main function."""
    args = build_parser().parse_args()
    tenant_id = parse_tenant_id(args.tenant_id)

    async with batch_runtime() as locks:
        async with get_db_context() as db:
            report = await run_robots_generation(
                db,
                get_file_store(),
                locks,
                tenant_id=tenant_id,
                locale=args.locale,
            )

    return print_report(report)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
