"""
Card Kingdom price list records.

Strict models for the remote price-list document and the on-disk cache
metadata. Anything that fails validation here is treated as unusable
data by the cache, never as a crash deep inside a caller.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PriceListError(Exception):
    """Base class for price-list cache failures."""

    pass


class PriceListUnavailableError(PriceListError):
    """Raised when the remote price list cannot be fetched and no cached copy exists."""

    pass


class CorruptCacheError(PriceListError):
    """Raised when the on-disk price list is unreadable even after a refresh."""

    pass


class ConditionValues(BaseModel):
    """Per-condition price and quantity breakdown."""

    model_config = ConfigDict(allow_inf_nan=False)

    nm_price: float | None = None
    nm_qty: int | None = None
    ex_price: float | None = None
    ex_qty: int | None = None
    vg_price: float | None = None
    vg_qty: int | None = None
    g_price: float | None = None
    g_qty: int | None = None


class CKProduct(BaseModel):
    """
    One SKU-variant row of the Card Kingdom price list.

    Foil and non-foil printings of the same card are separate rows that
    share a scryfall_id. Prices are in USD dollars.
    """

    model_config = ConfigDict(extra="allow", allow_inf_nan=False)

    id: int
    sku: str
    scryfall_id: str | None = None
    is_foil: bool

    price_retail: float
    qty_retail: int = 0
    price_buy: float = 0.0
    qty_buying: int = 0
    condition_values: ConditionValues | None = None

    name: str = ""
    edition: str = ""
    variation: str = ""
    url: str = ""


class PriceListMeta(BaseModel):
    """Document metadata; unknown fields are passed through untouched."""

    model_config = ConfigDict(extra="allow")

    base_url: str = ""
    date_updated: str = ""


class PriceListSnapshot(BaseModel):
    """The full price-list document as downloaded and cached."""

    meta: PriceListMeta
    data: list[CKProduct]

    @property
    def product_count(self) -> int:
        return len(self.data)


class CacheMeta(BaseModel):
    """
    Cache bookkeeping written next to the snapshot.

    Serialized with the camelCase keys used by the existing cache files.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_fetched: datetime = Field(..., alias="lastFetched")
    product_count: int = Field(..., alias="productCount", ge=0)

    @field_validator("last_fetched")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Older files may carry naive timestamps
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


@dataclass(frozen=True, slots=True)
class CacheStatus:
    """
    Snapshot of the cache state for operator tooling.

    Attributes:
        path: Location of the cached price list
        exists: Whether a price-list file is present on disk
        stale: Whether the next access would trigger a refresh
        last_fetched: When the cache was last written (None if unknown)
        product_count: Entry count recorded at the last write
    """

    path: Path
    exists: bool
    stale: bool
    last_fetched: datetime | None = None
    product_count: int | None = None
