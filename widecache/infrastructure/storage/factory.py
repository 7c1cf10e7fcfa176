"""
Cache store factory.

Builds the CacheStore selected by CACHE_STORE_BACKEND.
"""

from typing import Optional, Type, TypeVar

import structlog
from redis.asyncio import Redis

from ...core.config import Settings, get_settings
from ...domain.cache.repository_interfaces import CacheStore
from ...services.cache.expiring_cache import Clock, ExpiringCache
from ..database import create_engine, create_session_factory
from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore
from .sqlalchemy_store import SqlAlchemyCacheStore

logger = structlog.get_logger()

T = TypeVar("T")


def create_cache_store(settings: Optional[Settings] = None) -> CacheStore:
    """Create the configured store. Call initialize() before first use."""
    settings = settings or get_settings()
    backend = settings.store_backend

    if backend == "sqlalchemy":
        engine = create_engine(settings)
        store: CacheStore = SqlAlchemyCacheStore(
            create_session_factory(engine), settings.keyspace, engine=engine
        )
    elif backend == "redis":
        client = Redis.from_url(
            settings.redis_url, max_connections=settings.REDIS_MAX_CONNECTIONS
        )
        store = RedisCacheStore(client, settings.keyspace)
    else:
        store = InMemoryCacheStore()

    logger.info("Cache store created", backend=backend, keyspace=settings.keyspace)
    return store


def create_expiring_cache(
    value_type: Type[T],
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    name: str = "ExpiringCache",
) -> ExpiringCache[T]:
    """Create a cache that owns a freshly built store.

    Use it as an async context manager so the store is initialized and closed.
    """
    settings = settings or get_settings()
    return ExpiringCache(
        create_cache_store(settings),
        value_type,
        settings=settings,
        clock=clock,
        name=name,
        owns_store=True,
    )
