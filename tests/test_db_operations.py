"""Tests for database product operations."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ckpricing.db.operations import (
    ProductNotFoundError,
    ProductRepository,
    create_product,
    get_product,
    product_to_record,
)
from ckpricing.models.db import Base, ProductDB
from ckpricing.services.price_sync import sync_prices


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


class TestProductOperations:
    async def test_create_product(self, session: AsyncSession) -> None:
        """Can create a new product."""
        product = await create_product(session, "Lightning Bolt", "bolt-id")

        assert product.id is not None
        assert product.scryfall_id == "bolt-id"
        assert product.price_in_sgd is None

    async def test_get_product(self, session: AsyncSession) -> None:
        """Can retrieve an existing product."""
        created = await create_product(session, "Counterspell", "cs-id")
        await session.commit()

        product = await get_product(session, created.id)

        assert product is not None
        assert product.title == "Counterspell"

    async def test_get_product_not_found(self, session: AsyncSession) -> None:
        """Returns None for non-existent product."""
        assert await get_product(session, 999) is None

    async def test_product_to_record(self, session: AsyncSession) -> None:
        product = await create_product(session, "Sol Ring", "sol-id")

        record = product_to_record(product)

        assert record.id == product.id
        assert record.title == "Sol Ring"
        assert record.scryfall_id == "sol-id"


class TestProductRepository:
    async def test_only_products_with_scryfall_id(self, session: AsyncSession) -> None:
        """Products without a scryfall_id are not listed."""
        await create_product(session, "Linked", "linked-id")
        await create_product(session, "Sealed Box")
        await session.commit()

        page = await ProductRepository(session).find_with_scryfall_id(page=1, limit=10)

        assert [p.title for p in page.docs] == ["Linked"]
        assert page.has_next_page is False

    async def test_pagination(self, session: AsyncSession) -> None:
        """Pages are ordered by id and report whether more follow."""
        for i in range(5):
            await create_product(session, f"Card {i}", f"id-{i}")
        await session.commit()
        repository = ProductRepository(session)

        first = await repository.find_with_scryfall_id(page=1, limit=2)
        third = await repository.find_with_scryfall_id(page=3, limit=2)
        beyond = await repository.find_with_scryfall_id(page=4, limit=2)

        assert [p.title for p in first.docs] == ["Card 0", "Card 1"]
        assert first.has_next_page is True
        assert [p.title for p in third.docs] == ["Card 4"]
        assert third.has_next_page is False
        assert beyond.docs == []

    async def test_exact_page_boundary(self, session: AsyncSession) -> None:
        """A full last page does not claim a next page."""
        for i in range(4):
            await create_product(session, f"Card {i}", f"id-{i}")
        await session.commit()

        second = await ProductRepository(session).find_with_scryfall_id(page=2, limit=2)

        assert len(second.docs) == 2
        assert second.has_next_page is False

    async def test_invalid_page(self, session: AsyncSession) -> None:
        with pytest.raises(ValueError, match="page must be >= 1"):
            await ProductRepository(session).find_with_scryfall_id(page=0, limit=10)

    async def test_update_product(self, session: AsyncSession) -> None:
        """Price fields are written to the product."""
        product = await create_product(session, "Bolt", "bolt-id")
        synced_at = datetime(2026, 10, 17, tzinfo=UTC)

        await ProductRepository(session).update_product(
            product.id,
            {
                "price_in_sgd": 1689,
                "price_in_sgd_enabled": True,
                "ck_price_usd": 1299,
                "ck_price_last_updated": synced_at,
            },
        )
        await session.commit()

        stored = await get_product(session, product.id)
        assert stored.price_in_sgd == 1689
        assert stored.price_in_sgd_enabled is True
        assert stored.ck_price_usd == 1299

    async def test_update_missing_product(self, session: AsyncSession) -> None:
        with pytest.raises(ProductNotFoundError, match="Product 42 not found"):
            await ProductRepository(session).update_product(42, {"ck_price_usd": 1})

    async def test_update_rejects_other_fields(self, session: AsyncSession) -> None:
        """Only price fields may be written by the sync."""
        product = await create_product(session, "Bolt", "bolt-id")

        with pytest.raises(ValueError, match="title"):
            await ProductRepository(session).update_product(product.id, {"title": "Renamed"})


class TestSyncAgainstDatabase:
    async def test_end_to_end(self, session, cache, clock, seed_cache, make_row, make_document) -> None:
        """Sync writes converted prices to stored products."""
        seed_cache(
            make_document(
                [
                    make_row(1, "bolt-id", price_retail=12.99),
                    make_row(2, "bolt-id", is_foil=True, price_retail=30.0),
                ]
            ),
            clock.now - timedelta(hours=1),
        )
        bolt = await create_product(session, "Lightning Bolt", "bolt-id")
        unpriced = await create_product(session, "Unlisted", "nope-id")
        await create_product(session, "Accessory")
        await session.commit()
        repository = ProductRepository(session)

        result = await sync_prices(cache, repository, repository, rate=1.3)
        await session.commit()

        assert result.total_products == 2
        assert result.updated == 1
        assert result.skipped == 1
        stored = await get_product(session, bolt.id)
        assert stored.price_in_sgd == 1689
        assert stored.ck_price_usd == 1299
        assert stored.price_in_sgd_enabled is True
        assert (await get_product(session, unpriced.id)).price_in_sgd is None

    async def test_failed_update_does_not_abort_sync(
        self, session, cache, clock, seed_cache, make_row, make_document
    ) -> None:
        """A product whose flush fails is rolled back alone; the rest are saved."""
        rows = [make_row(i, f"id-{i}", price_retail=2.5) for i in range(1, 11)]
        # Converted cents overflow SQLite's 64-bit INTEGER on flush
        rows[4]["price_retail"] = 1e17
        seed_cache(make_document(rows), clock.now - timedelta(hours=1))
        products = [await create_product(session, f"Card {i}", f"id-{i}") for i in range(1, 11)]
        await session.commit()
        ids = [p.id for p in products]
        repository = ProductRepository(session)

        result = await sync_prices(cache, repository, repository, rate=1.3)
        await session.commit()

        assert result.matched == 10
        assert result.updated == 9
        assert len(result.errors) == 1
        assert result.errors[0].startswith(f"Failed to update product {ids[4]} (Card 5)")

        priced = await session.scalar(
            select(func.count()).select_from(ProductDB).where(ProductDB.price_in_sgd.is_not(None))
        )
        assert priced == 9
        assert (await get_product(session, ids[4])).price_in_sgd is None
        assert (await get_product(session, ids[9])).price_in_sgd == 325

    async def test_missing_product_leaves_session_usable(self, session: AsyncSession) -> None:
        """A rejected update does not poison later updates in the same session."""
        product = await create_product(session, "Bolt", "bolt-id")
        await session.commit()
        repository = ProductRepository(session)

        with pytest.raises(ProductNotFoundError):
            await repository.update_product(999, {"ck_price_usd": 1})
        await repository.update_product(product.id, {"ck_price_usd": 250})
        await session.commit()

        assert (await get_product(session, product.id)).ck_price_usd == 250
