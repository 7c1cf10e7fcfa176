"""
Cache Repository Interfaces

Abstract storage contract for cache persistence implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

# A storage record maps a super column name ("Item", "Policy") to its columns.
StorageRecord = Dict[str, Dict[str, Any]]


class CacheStore(ABC):
    """
    Abstract key-value storage collaborator for the cache.

    Records are addressed by (region, key). Deleting an absent record must be
    a safe no-op. Implementations wrap driver failures in
    StorageUnavailableException and never retry on their own.
    """

    async def initialize(self) -> None:
        """Prepare connections or schema. Optional."""

    async def close(self) -> None:
        """Release connections. Optional."""

    @abstractmethod
    async def write(self, region: str, key: str, record: StorageRecord) -> None:
        """Replace the whole record stored under (region, key)."""
        pass

    @abstractmethod
    async def read(self, region: str, key: str) -> Optional[StorageRecord]:
        """Return the record stored under (region, key), or None."""
        pass

    @abstractmethod
    async def delete(self, region: str, key: str) -> None:
        """Delete the record under (region, key) if present."""
        pass

    @abstractmethod
    async def delete_all(self, region: str) -> None:
        """Delete every record of a region."""
        pass
