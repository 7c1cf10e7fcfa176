"""
Cache storage implementations.
"""

from .factory import create_cache_store, create_expiring_cache
from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore
from .sqlalchemy_store import SqlAlchemyCacheStore

__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
    "SqlAlchemyCacheStore",
    "create_cache_store",
    "create_expiring_cache",
]
