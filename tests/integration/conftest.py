"""
Integration test configuration.

Runs the SQLAlchemy store against a file backed SQLite database through
aiosqlite.
"""

import pytest

from widecache.core.config import Settings
from widecache.infrastructure.database import (
    create_engine,
    create_schema,
    create_session_factory,
)
from widecache.infrastructure.storage.sqlalchemy_store import SqlAlchemyCacheStore
from widecache.services.cache.expiring_cache import ExpiringCache


@pytest.fixture
def database_settings(tmp_path):
    return Settings(
        ENVIRONMENT="test",
        CACHE_STORE_BACKEND="sqlalchemy",
        CACHE_KEYSPACE="widecache_it",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'cache.db'}",
    )


@pytest.fixture
async def engine(database_settings):
    engine = create_engine(database_settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def sql_store(session_factory, database_settings):
    return SqlAlchemyCacheStore(session_factory, database_settings.keyspace)


@pytest.fixture
async def cache_factory(sql_store, database_settings, clock):
    """Build caches of any value type sharing one store."""
    caches = []

    def factory(value_type):
        cache = ExpiringCache(
            sql_store, value_type, settings=database_settings, clock=clock
        )
        caches.append(cache)
        return cache

    yield factory

    for cache in caches:
        await cache.close()


@pytest.fixture
async def sql_cache(sql_store, database_settings, clock):
    cache = ExpiringCache(sql_store, str, settings=database_settings, clock=clock)
    yield cache
    await cache.close()
