"""
In-memory cache store.

Process-local CacheStore used for tests and single-process deployments.
Records are deep-copied on the way in and out so callers never share state
with the store.
"""

import copy
from typing import Dict, Optional

from ...domain.cache.repository_interfaces import CacheStore, StorageRecord


class InMemoryCacheStore(CacheStore):
    """Dictionary backed store: region -> key -> record."""

    def __init__(self):
        self._regions: Dict[str, Dict[str, StorageRecord]] = {}
        self.write_count = 0
        self.delete_count = 0

    async def write(self, region: str, key: str, record: StorageRecord) -> None:
        self._regions.setdefault(region, {})[key] = copy.deepcopy(record)
        self.write_count += 1

    async def read(self, region: str, key: str) -> Optional[StorageRecord]:
        record = self._regions.get(region, {}).get(key)
        return copy.deepcopy(record) if record is not None else None

    async def delete(self, region: str, key: str) -> None:
        records = self._regions.get(region)
        if records and records.pop(key, None) is not None:
            self.delete_count += 1

    async def delete_all(self, region: str) -> None:
        self._regions.pop(region, None)

    def region_size(self, region: str) -> int:
        return len(self._regions.get(region, {}))
