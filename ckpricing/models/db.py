"""
SQLAlchemy ORM models for persistent storage.

Products are the shop's sellable cards. Only the fields the price sync
reads or writes are modelled here.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class ProductDB(Base):
    """
    A sellable product stored in the database.

    Products linked to a Scryfall card carry `scryfall_id` and receive
    Card Kingdom prices during bulk sync.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255))
    scryfall_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)

    # Shop price in SGD cents
    price_in_sgd: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price_in_sgd_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Mirror of the Card Kingdom retail price in USD cents
    ck_price_usd: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ck_price_last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ProductDB(id={self.id}, title={self.title})>"
