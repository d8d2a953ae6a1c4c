from ckpricing.models.pricelist import (
    CacheMeta,
    CacheStatus,
    CKProduct,
    ConditionValues,
    CorruptCacheError,
    PriceListError,
    PriceListMeta,
    PriceListSnapshot,
    PriceListUnavailableError,
)
from ckpricing.models.sync import SyncResult

__all__ = [
    "CKProduct",
    "CacheMeta",
    "CacheStatus",
    "ConditionValues",
    "CorruptCacheError",
    "PriceListError",
    "PriceListMeta",
    "PriceListSnapshot",
    "PriceListUnavailableError",
    "SyncResult",
]
