"""
Sync Card Kingdom prices to the product database.

Run once:
    python -m ckpricing.jobs.sync_prices

Run as a daemon that syncs daily:
    python -m ckpricing.jobs.sync_prices --schedule
"""

import argparse
import asyncio
import json
import logging
from functools import lru_cache

from sqlalchemy.exc import SQLAlchemyError

from ckpricing.db.database import async_session_factory, init_db
from ckpricing.db.operations import ProductRepository
from ckpricing.jobs.scheduler import SyncScheduler
from ckpricing.models.sync import SyncResult
from ckpricing.services.price_sync import sync_prices
from ckpricing.services.pricelist_cache import PriceListCache, get_pricelist_cache

logger = logging.getLogger(__name__)


async def run_sync(cache: PriceListCache | None = None) -> SyncResult:
    """
    Run one bulk price sync against the product database.

    Args:
        cache: Price-list cache to use. Defaults to the process-wide cache.

    Returns:
        SyncResult from the sync. A failed commit is added to its errors.
    """
    if cache is None:
        cache = get_pricelist_cache()

    async with async_session_factory() as session:
        repository = ProductRepository(session)
        result = await sync_prices(cache, repository, repository)

        try:
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            message = f"Commit failed: {e}"
            result.errors.append(message)
            logger.error("%s", message)

    return result


@lru_cache(maxsize=1)
def get_sync_scheduler() -> SyncScheduler:
    """
    Get the process-wide daily sync scheduler.

    Created on first use; call register_once() on it during startup.
    """
    return SyncScheduler(run_sync)


async def run_scheduled() -> None:
    """Register the daily sync and run until cancelled."""
    await init_db()
    scheduler = get_sync_scheduler()
    scheduler.register_once()
    await scheduler.wait()


async def run_once() -> SyncResult:
    """Create tables if needed and run one sync."""
    await init_db()
    return await run_sync()


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Sync Card Kingdom prices to products")
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="Keep running and sync daily instead of syncing once",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.schedule:
        asyncio.run(run_scheduled())
        return

    result = asyncio.run(run_once())
    print(json.dumps(result.to_dict(), indent=2))
    if result.errors:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
