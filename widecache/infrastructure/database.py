"""
widecache Database Configuration

Async engine and session factory construction plus schema provisioning for
the wide-column cache table.
"""

from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..core.config import Settings, get_settings
from ..models import Base, CacheColumn

logger = structlog.get_logger()


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Create the async engine described by DATABASE_URL."""
    settings = settings or get_settings()
    url = make_url(settings.database_url)

    options = {"echo": settings.DATABASE_ECHO, "pool_pre_ping": True}
    # SQLite engines use a static/null pool that takes no sizing arguments
    if not url.get_backend_name().startswith("sqlite"):
        options["pool_size"] = settings.DATABASE_POOL_SIZE

    engine = create_async_engine(url, **options)
    logger.info(
        "Cache database engine created",
        backend=url.get_backend_name(),
        database=url.database,
    )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create the cache table if it does not exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Cache schema ensured", table=CacheColumn.__tablename__)


async def drop_schema(engine: AsyncEngine) -> None:
    """Drop the cache table."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Cache schema dropped", table=CacheColumn.__tablename__)


async def drop_keyspace(
    session_factory: async_sessionmaker[AsyncSession], keyspace: str
) -> int:
    """
    Delete every row of a keyspace across all regions.

    Returns:
        Number of columns deleted
    """
    async with session_factory() as session:
        async with session.begin():
            result = await session.execute(
                delete(CacheColumn).where(CacheColumn.keyspace == keyspace)
            )

    logger.info("Cache keyspace dropped", keyspace=keyspace, columns=result.rowcount)
    return result.rowcount
