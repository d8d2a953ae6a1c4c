from ckpricing.services.currency import round_half_up, to_minor_units, usd_to_sgd_cents
from ckpricing.services.price_lookup import find_price_entry, lookup_price
from ckpricing.services.price_sync import (
    ProductPage,
    ProductRecord,
    ProductSink,
    ProductSource,
    build_price_update,
    sync_prices,
)
from ckpricing.services.pricelist_cache import (
    LookupIndex,
    PriceListCache,
    find_variant,
    get_pricelist_cache,
    index_by_scryfall_id,
)

__all__ = [
    "LookupIndex",
    "PriceListCache",
    "ProductPage",
    "ProductRecord",
    "ProductSink",
    "ProductSource",
    "build_price_update",
    "find_price_entry",
    "find_variant",
    "get_pricelist_cache",
    "index_by_scryfall_id",
    "lookup_price",
    "round_half_up",
    "sync_prices",
    "to_minor_units",
    "usd_to_sgd_cents",
]
