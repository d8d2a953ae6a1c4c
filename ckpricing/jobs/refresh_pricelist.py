"""
Refresh the Card Kingdom price-list cache.

Run this job to warm the cache before the first lookup or sync, or to
inspect the cache state with --status.
"""

import argparse
import asyncio
import logging

from ckpricing.models.pricelist import CacheStatus
from ckpricing.services.pricelist_cache import PriceListCache, get_pricelist_cache

logger = logging.getLogger(__name__)


async def run_refresh(force: bool = False, cache: PriceListCache | None = None) -> int:
    """
    Refresh the price-list cache.

    Args:
        force: Download even if the cache is fresh
        cache: Cache to refresh. Defaults to the process-wide cache.

    Returns:
        Number of products in the cached price list
    """
    if cache is None:
        cache = get_pricelist_cache()

    try:
        if force:
            count = await cache.refresh()
        else:
            count = (await cache.ensure_fresh_cache()).product_count
    except Exception as e:
        logger.error("Failed to refresh pricelist cache: %s", e)
        raise

    logger.info("Pricelist cache at %s holds %d products", cache.pricelist_path, count)
    return count


def format_status(status: CacheStatus) -> str:
    """Render cache status for the terminal."""
    last_fetched = status.last_fetched.isoformat() if status.last_fetched else "never"
    products = status.product_count if status.product_count is not None else "unknown"
    return "\n".join(
        [
            f"Pricelist:    {status.path}",
            f"Present:      {'yes' if status.exists else 'no'}",
            f"Stale:        {'yes' if status.stale else 'no'}",
            f"Last fetched: {last_fetched}",
            f"Products:     {products}",
        ]
    )


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Refresh the Card Kingdom pricelist cache")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Download even if the cache is less than 24 hours old",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Show cache status and exit without downloading",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.status:
        print(format_status(get_pricelist_cache().status()))
        return

    asyncio.run(run_refresh(force=args.force))


if __name__ == "__main__":
    main()
