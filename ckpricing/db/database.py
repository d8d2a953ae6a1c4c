"""
Database engine and session management.

Provides async SQLAlchemy engine and session factory for the product store.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ckpricing.config import settings
from ckpricing.models.db import Base

# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """
    Initialize database tables.

    Creates all tables defined in the ORM models.
    Called by the sync jobs before the first sync.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
