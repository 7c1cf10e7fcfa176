"""
SQLAlchemy Cache Store

CacheStore over the wide-column cache table. A record is the set of rows
sharing (keyspace, column family, row key); each (super column, column) pair
of the record is one row. Writes replace the rows of a record inside a
single transaction so Item and Policy columns are always written together.
"""

from collections import defaultdict
from typing import Dict, Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ...domain.cache.exceptions import (
    CacheInvalidArgumentException,
    StorageUnavailableException,
)
from ...domain.cache.repository_interfaces import CacheStore, StorageRecord
from ...domain.cache.value_objects import validate_keyspace
from ...models import CacheColumn
from ..database import create_schema

logger = structlog.get_logger()


class SqlAlchemyCacheStore(CacheStore):
    """
    ORM-backed cache store.

    Args:
        session_factory: Async session factory bound to the cache database
        keyspace: Keyspace partitioning this cache's rows
        engine: Engine to provision and dispose; None when owned elsewhere
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        keyspace: str,
        engine: Optional[AsyncEngine] = None,
    ):
        if session_factory is None:
            raise CacheInvalidArgumentException(
                "session_factory is required", argument="session_factory"
            )
        self.session_factory = session_factory
        self.keyspace = validate_keyspace(keyspace)
        self.engine = engine

    def _row_filter(self, region: str, key: Optional[str] = None):
        conditions = [
            CacheColumn.keyspace == self.keyspace,
            CacheColumn.column_family == region,
        ]
        if key is not None:
            conditions.append(CacheColumn.row_key == key)
        return conditions

    async def initialize(self) -> None:
        if self.engine is None:
            return
        try:
            await create_schema(self.engine)
        except SQLAlchemyError as e:
            raise StorageUnavailableException("initialize", original_error=e) from e

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()

    async def write(self, region: str, key: str, record: StorageRecord) -> None:
        columns = [
            CacheColumn(
                keyspace=self.keyspace,
                column_family=region,
                row_key=key,
                super_column=super_column,
                column_name=column_name,
                value=value,
            )
            for super_column, fields in record.items()
            for column_name, value in fields.items()
        ]

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(CacheColumn).where(*self._row_filter(region, key))
                    )
                    session.add_all(columns)
        except SQLAlchemyError as e:
            logger.error(
                "Cache write failed", region=region, key=key, error=str(e)
            )
            raise StorageUnavailableException("write", region, key, e) from e

    async def read(self, region: str, key: str) -> Optional[StorageRecord]:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(
                        CacheColumn.super_column,
                        CacheColumn.column_name,
                        CacheColumn.value,
                    ).where(*self._row_filter(region, key))
                )
                rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Cache read failed", region=region, key=key, error=str(e))
            raise StorageUnavailableException("read", region, key, e) from e

        if not rows:
            return None

        record: Dict[str, Dict] = defaultdict(dict)
        for super_column, column_name, value in rows:
            record[super_column][column_name] = value
        return dict(record)

    async def delete(self, region: str, key: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    await session.execute(
                        delete(CacheColumn).where(*self._row_filter(region, key))
                    )
        except SQLAlchemyError as e:
            logger.error("Cache delete failed", region=region, key=key, error=str(e))
            raise StorageUnavailableException("delete", region, key, e) from e

    async def delete_all(self, region: str) -> None:
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        delete(CacheColumn).where(*self._row_filter(region))
                    )
        except SQLAlchemyError as e:
            logger.error("Cache region delete failed", region=region, error=str(e))
            raise StorageUnavailableException("delete_all", region, original_error=e) from e

        logger.debug("Cache region deleted", region=region, columns=result.rowcount)
