"""Generate sitemap files for one tenant or all active tenants.

Usage:
    python -m seo_engine.scripts.generate_sitemaps
    python -m seo_engine.scripts.generate_sitemaps --tenant-id <uuid> --type vehicles
    python -m seo_engine.scripts.generate_sitemaps --limit 500 --dry-run
"""

import argparse
import asyncio
import sys

from seo_engine.config import settings
from seo_engine.core.database import get_db_context
from seo_engine.core.storage import get_file_store
from seo_engine.modules.seo.jobs import run_sitemap_generation
from seo_engine.modules.seo.sitemap import GENERATABLE_TYPES
from seo_engine.scripts._runtime import batch_runtime, parse_tenant_id, print_report


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate tenant sitemaps")
    parser.add_argument(
        "--tenant-id",
        type=str,
        help="Generate only for this tenant (UUID)",
    )
    parser.add_argument(
        "--type",
        choices=GENERATABLE_TYPES,
        default="all",
        help="Sitemap type to generate",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=settings.sitemap_url_limit,
        help="Maximum URLs per sitemap file",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the files and URL counts without writing anything",
    )
    return parser


async def main() -> int:
    """Main function."""
    args = build_parser().parse_args()
    tenant_id = parse_tenant_id(args.tenant_id)

    if args.limit < 1:
        print("❌ Error: --limit must be at least 1")
        return 2

    async with batch_runtime() as locks:
        async with get_db_context() as db:
            report = await run_sitemap_generation(
                db,
                get_file_store(),
                locks,
                tenant_id=tenant_id,
                sitemap_type=args.type,
                limit=args.limit,
                dry_run=args.dry_run,
            )

    if args.dry_run:
        print("🔍 DRY RUN MODE - No files written")
        for result in report.results:
            for file in result.files:
                print(f"  {result.tenant_id} {file.filename}: {file.url_count} URLs")

    return print_report(report)


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
