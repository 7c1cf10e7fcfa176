"""
widecache

Expiring out-of-process cache over a wide-column store.
"""

from .constants import APP_VERSION as __version__
from .constants import DEFAULT_REGION
from .domain.cache.change_monitors import (
    ChangeMonitor,
    ChangeNotificationHub,
    ChangeNotifier,
    SourceChangeMonitor,
)
from .domain.cache.entities import CacheEntry, CacheItem
from .domain.cache.exceptions import (
    CacheDecodeException,
    CacheException,
    CacheInvalidArgumentException,
    CacheOperationNotSupportedException,
    StorageUnavailableException,
)
from .domain.cache.repository_interfaces import CacheStore
from .domain.cache.value_objects import (
    CacheCapabilities,
    CacheKey,
    CachePolicy,
    ExpirationOutcome,
)
from .services.cache.expiring_cache import ExpiringCache

__all__ = [
    "DEFAULT_REGION",
    "CacheCapabilities",
    "CacheDecodeException",
    "CacheEntry",
    "CacheException",
    "CacheInvalidArgumentException",
    "CacheItem",
    "CacheKey",
    "CacheOperationNotSupportedException",
    "CachePolicy",
    "CacheStore",
    "ChangeMonitor",
    "ChangeNotificationHub",
    "ChangeNotifier",
    "ExpirationOutcome",
    "ExpiringCache",
    "SourceChangeMonitor",
    "StorageUnavailableException",
]
