"""
Database product operations.

Provides async functions for creating and reading products, and the
repository the price sync pages through and writes prices to.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ckpricing.models.db import ProductDB
from ckpricing.services.price_sync import ProductPage, ProductRecord

# Fields the price sync is allowed to write
SYNC_FIELDS = frozenset(
    {"price_in_sgd", "price_in_sgd_enabled", "ck_price_usd", "ck_price_last_updated"}
)


class ProductNotFoundError(LookupError):
    """Raised when updating a product id that does not exist."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


async def create_product(
    session: AsyncSession, title: str, scryfall_id: str | None = None
) -> ProductDB:
    """Create a new product."""
    product = ProductDB(title=title, scryfall_id=scryfall_id)
    session.add(product)
    await session.flush()
    return product


async def get_product(session: AsyncSession, product_id: int) -> ProductDB | None:
    """
    Get a product by id.

    Returns None if no product exists with this id.
    """
    return await session.get(ProductDB, product_id)


def product_to_record(product: ProductDB) -> ProductRecord:
    """Convert a database product to the record the sync reads."""
    return ProductRecord(id=product.id, title=product.title, scryfall_id=product.scryfall_id)


class ProductRepository:
    """
    Product source and sink for the price sync.

    Reads and writes through one session; the caller commits.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_with_scryfall_id(self, page: int, limit: int) -> ProductPage:
        """
        Get one page of products that have a scryfall_id, ordered by id.

        Args:
            page: 1-based page number
            limit: Page size
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")

        # One extra row tells us whether another page follows
        result = await self.session.execute(
            select(ProductDB)
            .where(ProductDB.scryfall_id.is_not(None))
            .order_by(ProductDB.id)
            .offset((page - 1) * limit)
            .limit(limit + 1)
        )
        rows = list(result.scalars())

        return ProductPage(
            docs=[product_to_record(p) for p in rows[:limit]],
            has_next_page=len(rows) > limit,
        )

    async def update_product(self, product_id: int, fields: dict[str, Any]) -> None:
        """
        Apply a partial price update to a product.

        Each update runs in its own SAVEPOINT. A failed flush rolls back
        only this product and leaves earlier updates in the session.

        Raises:
            ValueError: If fields contains anything outside SYNC_FIELDS
            ProductNotFoundError: If the product does not exist
        """
        unknown = set(fields) - SYNC_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        async with self.session.begin_nested():
            product = await get_product(self.session, product_id)
            if product is None:
                raise ProductNotFoundError(product_id)

            for name, value in fields.items():
                setattr(product, name, value)

            await self.session.flush()
