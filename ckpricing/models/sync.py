from dataclasses import dataclass, field
from typing import Any


@dataclass
class SyncResult:
    """
    Aggregate outcome of a bulk price sync.

    Always returned to the caller, even when the sync aborts early, so
    operational tooling can alert on `errors`.

    Attributes:
        total_products: Products considered (all carried a scryfall_id field)
        matched: Products found in the price-list lookup index
        updated: Matched products whose prices were written back
        skipped: Products with no usable id or no price-list entry
        errors: One message per failed update, or one for an aborted sync
    """

    total_products: int = 0
    matched: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalProducts": self.total_products,
            "matched": self.matched,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }
