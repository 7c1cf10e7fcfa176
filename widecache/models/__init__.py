"""
widecache Database Models

SQLAlchemy model laying out cache records as wide rows: one row per
(keyspace, column family, row key, super column, column).
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Canonical Base class for all database models."""

    pass


class CacheColumn(Base):
    """
    Single column of a cache record.

    column_family holds the cache region; super_column is "Item" or "Policy".
    """

    __tablename__ = "cache_columns"

    keyspace: Mapped[str] = mapped_column(String(48), primary_key=True)
    column_family: Mapped[str] = mapped_column(String(48), primary_key=True)
    row_key: Mapped[str] = mapped_column(String(250), primary_key=True)
    super_column: Mapped[str] = mapped_column(String(64), primary_key=True)
    column_name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    written_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<CacheColumn {self.keyspace}.{self.column_family}"
            f"[{self.row_key}][{self.super_column}][{self.column_name}]>"
        )
