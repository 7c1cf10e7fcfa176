"""
Main pytest configuration for widecache tests.

Fixtures shared by unit and integration tests: a controllable clock, an
in-memory store, a change notification hub and a string cache wired to them.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

# Set test environment variables before importing widecache modules
os.environ["ENVIRONMENT"] = "test"
os.environ["CACHE_STORE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "DEBUG"

from widecache.core.config import Settings
from widecache.domain.cache.change_monitors import ChangeNotificationHub
from widecache.infrastructure.storage.memory_store import InMemoryCacheStore
from widecache.services.cache.expiring_cache import ExpiringCache


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> datetime:
        self.now = self.now + delta
        return self.now


@pytest.fixture
def clock():
    """Clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def test_settings():
    """Settings independent of the process environment."""
    return Settings(
        ENVIRONMENT="test",
        CACHE_STORE_BACKEND="memory",
        CACHE_KEYSPACE="widecache_test",
    )


@pytest.fixture
def memory_store():
    return InMemoryCacheStore()


@pytest.fixture
def hub():
    return ChangeNotificationHub()


@pytest.fixture
async def cache(memory_store, test_settings, clock):
    """String cache over the in-memory store."""
    cache = ExpiringCache(memory_store, str, settings=test_settings, clock=clock)
    yield cache
    await cache.close()
