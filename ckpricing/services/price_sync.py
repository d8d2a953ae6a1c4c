"""
Bulk Card Kingdom price sync.

Applies Card Kingdom retail prices to every product linked to a Scryfall
card:

1. Refreshes the price-list cache if stale
2. Pages through all products that have a scryfall_id
3. Looks up each product in the price-list index by scryfall_id
4. Converts the retail price (USD) to SGD cents
5. Writes price_in_sgd, price_in_sgd_enabled, ck_price_usd and
   ck_price_last_updated back to the product

A failed product update is recorded and the sync moves on. A failure
outside individual updates ends the sync early; the counters collected
so far are still returned.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from ckpricing.config import DEFAULT_PAGE_SIZE, USD_TO_SGD, utcnow
from ckpricing.models.sync import SyncResult
from ckpricing.services.currency import to_minor_units, usd_to_sgd_cents
from ckpricing.services.pricelist_cache import PriceListCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """The product fields the sync reads."""

    id: int
    title: str
    scryfall_id: str | None


@dataclass(frozen=True, slots=True)
class ProductPage:
    """One page of products from a ProductSource."""

    docs: list[ProductRecord] = field(default_factory=list)
    has_next_page: bool = False


class ProductSource(Protocol):
    """Paginated listing of products that have a scryfall_id field."""

    async def find_with_scryfall_id(self, page: int, limit: int) -> ProductPage: ...


class ProductSink(Protocol):
    """Applies a partial field update to one product."""

    async def update_product(self, product_id: int, fields: dict[str, Any]) -> None: ...


def build_price_update(
    price_retail_usd: float, rate: float, synced_at: datetime
) -> dict[str, Any]:
    """
    Build the product fields written for a matched price-list row.

    Example: 12.99 USD at 1.3 -> price_in_sgd=1689, ck_price_usd=1299
    """
    return {
        "price_in_sgd": usd_to_sgd_cents(price_retail_usd, rate),
        "price_in_sgd_enabled": True,
        "ck_price_usd": to_minor_units(price_retail_usd),
        "ck_price_last_updated": synced_at,
    }


async def sync_prices(
    cache: PriceListCache,
    source: ProductSource,
    sink: ProductSink,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
    rate: float = USD_TO_SGD,
    clock: Callable[[], datetime] | None = None,
) -> SyncResult:
    """
    Sync Card Kingdom prices to all products that have a scryfall_id.

    Args:
        cache: Price-list cache providing the lookup index
        source: Paginated product listing
        sink: Product update target
        page_size: Products requested per page
        rate: USD -> SGD conversion rate
        clock: Returns the current time stamped on updated products

    Returns:
        SyncResult with counters and error messages. Never raises for
        sync failures; they are reported in `errors`.
    """
    now = clock or utcnow
    result = SyncResult()

    try:
        index = await cache.build_lookup_index()

        page = 1
        has_more = True

        while has_more:
            products = await source.find_with_scryfall_id(page=page, limit=page_size)
            result.total_products += len(products.docs)

            for product in products.docs:
                if not product.scryfall_id:
                    result.skipped += 1
                    continue

                ck_product = index.get(product.scryfall_id)
                if ck_product is None:
                    result.skipped += 1
                    continue

                result.matched += 1

                try:
                    fields = build_price_update(ck_product.price_retail, rate, now())
                    await sink.update_product(product.id, fields)
                    result.updated += 1
                except Exception as e:
                    message = f"Failed to update product {product.id} ({product.title}): {e}"
                    result.errors.append(message)
                    logger.error("%s", message)

            has_more = products.has_next_page
            page += 1

        logger.info(
            "Sync complete: %d total, %d matched, %d updated, %d skipped, %d errors",
            result.total_products,
            result.matched,
            result.updated,
            result.skipped,
            len(result.errors),
        )
    except Exception as e:
        message = f"Sync failed: {e}"
        result.errors.append(message)
        logger.error("%s", message)

    return result
