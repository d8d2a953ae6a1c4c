import json
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest

from ckpricing.services.pricelist_cache import PriceListCache

PRICELIST_URL = "https://api.cardkingdom.com/api/v2/pricelist"


class FakeClock:
    """Settable clock returning an aware UTC datetime."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 17, 12, 0, tzinfo=UTC))


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Factory for Card Kingdom price-list rows."""

    def _make_row(
        id: int,
        scryfall_id: str | None,
        is_foil: bool = False,
        price_retail: float = 1.0,
        **extra: Any,
    ) -> dict[str, Any]:
        row = {
            "id": id,
            "sku": f"SKU-{id}{'F' if is_foil else ''}",
            "url": f"mtg/card-{id}",
            "name": f"Card {id}",
            "variation": "",
            "edition": "Dominaria United",
            "is_foil": is_foil,
            "price_retail": price_retail,
            "qty_retail": 4,
            "price_buy": round(price_retail / 2, 2),
            "qty_buying": 8,
            "scryfall_id": scryfall_id,
        }
        row.update(extra)
        return row

    return _make_row


@pytest.fixture
def make_document() -> Callable[[list[dict[str, Any]]], dict[str, Any]]:
    """Factory for full price-list documents."""

    def _make_document(rows: list[dict[str, Any]]) -> dict[str, Any]:
        return {
            "meta": {
                "base_url": "https://www.cardkingdom.com/",
                "date_updated": "2026-10-17T05:00:00+00:00",
                "generated_by": "ck-api",
            },
            "data": rows,
        }

    return _make_document


@pytest.fixture
def sample_document(make_row, make_document) -> dict[str, Any]:
    """Three rows: a foil/non-foil pair sharing an id, and one without an id."""
    return make_document(
        [
            make_row(1, "aaa-111", is_foil=True, price_retail=10.0),
            make_row(2, "aaa-111", is_foil=False, price_retail=8.0),
            make_row(3, "", price_retail=0.25),
        ]
    )


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / ".ck-cache"


@pytest.fixture
def cache(cache_dir: Path, clock: FakeClock) -> PriceListCache:
    return PriceListCache(cache_dir=cache_dir, url=PRICELIST_URL, clock=clock)


@pytest.fixture
def seed_cache(cache_dir: Path) -> Callable[..., None]:
    """Write cache files directly, as a previous refresh would have."""

    def _seed(document: dict[str, Any] | None, last_fetched: datetime | None) -> None:
        cache_dir.mkdir(parents=True, exist_ok=True)
        if document is not None:
            (cache_dir / "pricelist.json").write_text(json.dumps(document), encoding="utf-8")
        if last_fetched is not None:
            meta = {
                "lastFetched": last_fetched.isoformat(),
                "productCount": len(document["data"]) if document else 0,
            }
            (cache_dir / "meta.json").write_text(json.dumps(meta, indent=2), encoding="utf-8")

    return _seed
