"""
Redis Cache Store

CacheStore keeping each record as one Redis hash named
"{keyspace}:{region}:{key}" with one JSON encoded field per super column.
"""

import json
from typing import Optional

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...domain.cache.exceptions import (
    CacheInvalidArgumentException,
    StorageUnavailableException,
)
from ...domain.cache.repository_interfaces import CacheStore, StorageRecord
from ...domain.cache.value_objects import validate_keyspace

logger = structlog.get_logger()


class RedisCacheStore(CacheStore):
    """
    Redis hash backed cache store.

    Writes run in a MULTI/EXEC pipeline so the previous hash is replaced
    atomically. delete_all walks the region with SCAN.
    """

    def __init__(self, client: Redis, keyspace: str, scan_batch_size: int = 500):
        if client is None:
            raise CacheInvalidArgumentException("client is required", argument="client")
        self.client = client
        self.keyspace = validate_keyspace(keyspace)
        self.scan_batch_size = scan_batch_size

    def _name(self, region: str, key: str) -> str:
        return f"{self.keyspace}:{region}:{key}"

    async def initialize(self) -> None:
        try:
            await self.client.ping()
        except RedisError as e:
            raise StorageUnavailableException("initialize", original_error=e) from e

    async def close(self) -> None:
        await self.client.aclose()

    async def write(self, region: str, key: str, record: StorageRecord) -> None:
        name = self._name(region, key)
        mapping = {
            super_column: json.dumps(fields)
            for super_column, fields in record.items()
        }

        try:
            async with self.client.pipeline(transaction=True) as pipe:
                pipe.delete(name)
                pipe.hset(name, mapping=mapping)
                await pipe.execute()
        except RedisError as e:
            logger.error("Cache write failed", region=region, key=key, error=str(e))
            raise StorageUnavailableException("write", region, key, e) from e

    async def read(self, region: str, key: str) -> Optional[StorageRecord]:
        try:
            raw = await self.client.hgetall(self._name(region, key))
        except RedisError as e:
            logger.error("Cache read failed", region=region, key=key, error=str(e))
            raise StorageUnavailableException("read", region, key, e) from e

        if not raw:
            return None

        record: StorageRecord = {}
        for field, payload in raw.items():
            if isinstance(field, bytes):
                field = field.decode("utf-8")
            try:
                record[field] = json.loads(payload)
            except (TypeError, ValueError):
                logger.warning(
                    "Skipping unreadable cache column",
                    region=region,
                    key=key,
                    column=field,
                )
        return record

    async def delete(self, region: str, key: str) -> None:
        try:
            await self.client.delete(self._name(region, key))
        except RedisError as e:
            logger.error("Cache delete failed", region=region, key=key, error=str(e))
            raise StorageUnavailableException("delete", region, key, e) from e

    async def delete_all(self, region: str) -> None:
        pattern = f"{self.keyspace}:{region}:*"
        deleted = 0

        try:
            batch = []
            async for name in self.client.scan_iter(
                match=pattern, count=self.scan_batch_size
            ):
                batch.append(name)
                if len(batch) >= self.scan_batch_size:
                    deleted += await self.client.delete(*batch)
                    batch = []
            if batch:
                deleted += await self.client.delete(*batch)
        except RedisError as e:
            logger.error("Cache region delete failed", region=region, error=str(e))
            raise StorageUnavailableException("delete_all", region, original_error=e) from e

        logger.debug("Cache region deleted", region=region, entries=deleted)
