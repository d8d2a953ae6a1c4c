"""
Card Kingdom price-list cache.

Keeps a disk-backed copy of the Card Kingdom price list, refreshed when
it is older than the configured max age. When Card Kingdom is
unavailable, a previously cached copy keeps serving prices.

Files in the cache directory:
    pricelist.json  full price-list document
    meta.json       {"lastFetched": ISO timestamp, "productCount": N}

Both files are replaced atomically, price list first, so meta.json never
describes a price list that is missing or half written.
"""

import asyncio
import logging
import os
import tempfile
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from functools import lru_cache
from pathlib import Path

import httpx
from pydantic import ValidationError

from ckpricing.config import CACHE_MAX_AGE, META_FILENAME, PRICELIST_FILENAME, settings, utcnow
from ckpricing.models.pricelist import (
    CacheMeta,
    CacheStatus,
    CKProduct,
    CorruptCacheError,
    PriceListSnapshot,
    PriceListUnavailableError,
)

logger = logging.getLogger(__name__)

LookupIndex = dict[str, CKProduct]


def _atomic_write(path: Path, content: str) -> None:
    """Write content to a temporary file beside path, then rename it into place."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def index_by_scryfall_id(products: Iterable[CKProduct]) -> LookupIndex:
    """
    Fold price-list rows into a scryfall_id -> representative row mapping.

    Rows without a scryfall_id are skipped. The first row seen for an id
    is kept, unless a later non-foil row replaces a kept foil row, so the
    non-foil price is the default whenever both variants exist.

    Args:
        products: Price-list rows in document order

    Returns:
        Dict mapping scryfall_id to a single CKProduct
    """
    index: LookupIndex = {}
    for product in products:
        if not product.scryfall_id:
            continue

        current = index.get(product.scryfall_id)
        if current is None or (current.is_foil and not product.is_foil):
            index[product.scryfall_id] = product

    return index


def find_variant(
    snapshot: PriceListSnapshot, scryfall_id: str, is_foil: bool
) -> CKProduct | None:
    """
    Scan the full price list for an exact (scryfall_id, is_foil) row.

    The lookup index holds one row per id; use this when the other
    variant is needed.
    """
    for product in snapshot.data:
        if product.scryfall_id == scryfall_id and product.is_foil == is_foil:
            return product
    return None


class PriceListCache:
    """
    Disk-backed cache of the Card Kingdom price list.

    Staleness is judged only from meta.json and the clock: a missing or
    corrupt meta.json means the cache is absent.
    """

    def __init__(
        self,
        cache_dir: Path | None = None,
        url: str | None = None,
        user_agent: str | None = None,
        max_age: timedelta | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize cache.

        Args:
            cache_dir: Directory holding the cache files (default: settings.ck_cache_dir)
            url: Price-list endpoint (default: settings.ck_pricelist_url)
            user_agent: Client identifier sent with the download
            max_age: Age after which the cache is stale (default: 24 hours)
            timeout: Download timeout in seconds
            client: Optional shared httpx client; one is created per download otherwise
            clock: Returns the current aware UTC time
        """
        self.cache_dir = cache_dir if cache_dir is not None else settings.ck_cache_dir
        self.url = url or settings.ck_pricelist_url
        self.user_agent = user_agent or settings.ck_user_agent
        self.max_age = max_age if max_age is not None else CACHE_MAX_AGE
        self.timeout = timeout if timeout is not None else settings.ck_fetch_timeout
        self._client = client
        self._clock = clock or utcnow
        self._refresh_lock = asyncio.Lock()

    @property
    def pricelist_path(self) -> Path:
        return self.cache_dir / PRICELIST_FILENAME

    @property
    def meta_path(self) -> Path:
        return self.cache_dir / META_FILENAME

    # --- Persisted state ---

    def read_meta(self) -> CacheMeta | None:
        """
        Read cache metadata.

        Returns None if meta.json is missing, unreadable, or invalid.
        """
        try:
            raw = self.meta_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot read cache metadata %s: %s", self.meta_path, e)
            return None

        try:
            return CacheMeta.model_validate_json(raw)
        except ValidationError:
            logger.warning("Corrupt cache metadata at %s, treating cache as absent", self.meta_path)
            return None

    def is_stale(self) -> bool:
        """True if there is no usable metadata or the last fetch is older than max_age."""
        meta = self.read_meta()
        if meta is None:
            return True
        return self._clock() - meta.last_fetched > self.max_age

    def _load_snapshot(self) -> PriceListSnapshot | None:
        """Read the cached price list, or None if it is missing or corrupt."""
        try:
            raw = self.pricelist_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Cannot read cached pricelist %s: %s", self.pricelist_path, e)
            return None

        try:
            return PriceListSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.warning("Corrupt cached pricelist at %s", self.pricelist_path)
            return None

    def status(self) -> CacheStatus:
        """Describe the current cache state without touching the network."""
        meta = self.read_meta()
        return CacheStatus(
            path=self.pricelist_path,
            exists=self.pricelist_path.exists(),
            stale=self.is_stale(),
            last_fetched=meta.last_fetched if meta else None,
            product_count=meta.product_count if meta else None,
        )

    # --- Remote ---

    async def _download(self) -> PriceListSnapshot:
        """
        Download and validate the price list.

        Raises:
            PriceListUnavailableError: On non-2xx status, transport error,
                timeout, or a document that fails validation
        """
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}

        try:
            if self._client is not None:
                response = await self._client.get(self.url, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(self.url, headers=headers)
            response.raise_for_status()
            return PriceListSnapshot.model_validate_json(response.content)
        except httpx.HTTPStatusError as e:
            raise PriceListUnavailableError(
                "Failed to download pricelist: "
                f"{e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except httpx.RequestError as e:
            raise PriceListUnavailableError(f"Failed to download pricelist: {e!r}") from e
        except ValidationError as e:
            raise PriceListUnavailableError(
                f"Failed to download pricelist: invalid document ({e.error_count()} errors)"
            ) from e

    async def refresh(self) -> int:
        """
        Download the price list and cache it to disk.

        On failure, a previously cached price list is kept as-is (meta.json
        included, so its age still counts) and its product count returned.

        Returns:
            Number of products in the cached price list

        Raises:
            PriceListUnavailableError: If the download fails and nothing is cached
        """
        logger.info("Downloading pricelist from Card Kingdom...")

        try:
            snapshot = await self._download()
        except PriceListUnavailableError as e:
            logger.error("%s", e)

            cached = self._load_snapshot()
            if cached is None:
                raise

            logger.warning("Using stale cache as fallback (%d products).", cached.product_count)
            return cached.product_count

        count = snapshot.product_count

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        _atomic_write(self.pricelist_path, snapshot.model_dump_json())

        meta = CacheMeta(last_fetched=self._clock(), product_count=count)
        _atomic_write(self.meta_path, meta.model_dump_json(by_alias=True, indent=2))

        logger.info("Cached %d products.", count)
        return count

    # --- Access ---

    async def _refresh_if_stale(self, force: bool = False) -> None:
        # Concurrent callers share one download
        async with self._refresh_lock:
            if force or self.is_stale():
                await self.refresh()

    async def ensure_fresh_cache(self) -> PriceListSnapshot:
        """
        Refresh the cache if stale, then return the price list from disk.

        The result is always re-read from disk, so it matches exactly what
        is persisted, including after a stale fallback.

        Raises:
            PriceListUnavailableError: If a needed refresh fails with nothing cached
            CorruptCacheError: If the cached file is unreadable even after a refresh
        """
        if self.is_stale():
            await self._refresh_if_stale()

        snapshot = self._load_snapshot()
        if snapshot is None:
            logger.warning("Cached pricelist missing or unreadable, forcing refresh.")
            await self._refresh_if_stale(force=True)
            snapshot = self._load_snapshot()

        if snapshot is None:
            raise CorruptCacheError(f"Cached pricelist at {self.pricelist_path} is unreadable")

        return snapshot

    async def build_lookup_index(self) -> LookupIndex:
        """
        Build a scryfall_id -> CKProduct map for fast lookups.

        Refreshes the cache first if it is stale. Non-foil rows are
        preferred; see index_by_scryfall_id.
        """
        snapshot = await self.ensure_fresh_cache()
        index = index_by_scryfall_id(snapshot.data)
        logger.info("Built lookup map with %d unique scryfall IDs.", len(index))
        return index


@lru_cache(maxsize=1)
def get_pricelist_cache() -> PriceListCache:
    """
    Get the process-wide price-list cache.

    Created on first use from settings.
    """
    return PriceListCache()
