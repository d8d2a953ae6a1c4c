"""
Single-card Card Kingdom price lookup.

Given a Scryfall id and optionally a foil flag, returns the Card Kingdom
retail price in USD cents, or None when there is no matching price.
"""

import logging

from ckpricing.models.pricelist import CKProduct
from ckpricing.services.currency import to_minor_units
from ckpricing.services.pricelist_cache import PriceListCache, find_variant

logger = logging.getLogger(__name__)


async def find_price_entry(
    cache: PriceListCache, scryfall_id: str, is_foil: bool | None = None
) -> CKProduct | None:
    """
    Find the price-list row for a card.

    Args:
        cache: Price-list cache (refreshed if stale)
        scryfall_id: Scryfall card id
        is_foil: Requested variant, or None for the default (non-foil preferred)

    Returns:
        The matching row, or None. When a specific variant is requested
        and only the other one exists, returns None rather than the other
        variant's row.

    Raises:
        ValueError: If scryfall_id is empty
    """
    if not scryfall_id:
        raise ValueError("scryfall_id is required")

    index = await cache.build_lookup_index()
    product = index.get(scryfall_id)

    if product is None or is_foil is None or product.is_foil == is_foil:
        return product

    # Index holds the other variant; look for the exact one
    snapshot = await cache.ensure_fresh_cache()
    exact = find_variant(snapshot, scryfall_id, is_foil)
    if exact is None:
        logger.debug("No %s variant for %s", "foil" if is_foil else "non-foil", scryfall_id)
    return exact


async def lookup_price(
    cache: PriceListCache, scryfall_id: str, is_foil: bool | None = None
) -> int | None:
    """
    Look up a card's Card Kingdom retail price.

    Returns:
        Price in USD cents, or None if the card (or requested variant)
        is not in the price list.

    Raises:
        ValueError: If scryfall_id is empty
        PriceListError: If the price list cannot be fetched or read
    """
    product = await find_price_entry(cache, scryfall_id, is_foil)
    if product is None:
        return None
    return to_minor_units(product.price_retail)
