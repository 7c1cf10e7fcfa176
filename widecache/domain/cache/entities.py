"""
Cache Domain Entities

Core domain entities for cache entries.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar

from .value_objects import CachePolicy

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """
    Cache entry entity.

    Owned by the cache service: created on set, touched on a sliding read,
    destroyed on remove, expiration or region clean.
    """

    added: datetime
    last_accessed: datetime
    value: T

    @classmethod
    def create(cls, value: T, now: datetime) -> "CacheEntry[T]":
        """Create a new entry stamped with the insertion time."""
        return cls(added=now, last_accessed=now, value=value)

    def touch(self, now: datetime) -> None:
        """Record a qualifying read for sliding expiration."""
        self.last_accessed = now

    def idle_for(self, now: datetime):
        """Time elapsed since the last qualifying access."""
        return now - self.last_accessed


@dataclass(frozen=True)
class DecodedEntry(Generic[T]):
    """A storage record read back as an entry plus its (optional) policy."""

    entry: CacheEntry[T]
    policy: Optional[CachePolicy] = None


@dataclass(frozen=True)
class CacheItem(Generic[T]):
    """Key, value and region bundled together."""

    key: str
    value: Optional[T] = None
    region: Optional[str] = None
