"""
Cache Value Objects

Immutable value objects for the cache domain.
Provides type safety and validation for keys, policies and expiration outcomes.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum, Flag, auto
from typing import Optional, Tuple, TYPE_CHECKING

from ...constants import DEFAULT_REGION, MAX_KEY_LENGTH, REGION_NAME_PATTERN
from .exceptions import CacheInvalidArgumentException

if TYPE_CHECKING:
    from .change_monitors import ChangeMonitor


_REGION_RE = re.compile(REGION_NAME_PATTERN)


class ExpirationOutcome(str, Enum):
    """Result of evaluating an entry against its policy at read time."""

    VALID = "valid"
    VALID_REFRESH = "valid_refresh"
    EXPIRED = "expired"


class CacheCapabilities(Flag):
    """Features a cache implementation offers."""

    NONE = 0
    IN_MEMORY_PROVIDER = auto()
    OUT_OF_PROCESS_PROVIDER = auto()
    CACHE_ENTRY_CHANGE_MONITORS = auto()
    ABSOLUTE_EXPIRATIONS = auto()
    SLIDING_EXPIRATIONS = auto()
    CACHE_ENTRY_UPDATE_CALLBACK = auto()
    CACHE_ENTRY_REMOVED_CALLBACK = auto()
    CACHE_REGIONS = auto()


def validate_region(region: str) -> str:
    """Validate a region name and return it."""
    if not isinstance(region, str) or not _REGION_RE.match(region):
        raise CacheInvalidArgumentException(
            f"Unsupported region name: {region!r}", argument="region"
        )
    return region


def validate_keyspace(keyspace: str) -> str:
    """Validate a keyspace name and return it."""
    if not isinstance(keyspace, str) or not keyspace.strip():
        raise CacheInvalidArgumentException(
            "keyspace cannot be empty", argument="keyspace"
        )
    if not _REGION_RE.match(keyspace):
        raise CacheInvalidArgumentException(
            f"Invalid keyspace name: {keyspace!r}", argument="keyspace"
        )
    return keyspace


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    A key string scoped to a region; at most one live entry exists per CacheKey.
    """

    key: str
    region: str = DEFAULT_REGION

    def __post_init__(self) -> None:
        """Validate key and region."""
        if not isinstance(self.key, str) or not self.key.strip():
            raise CacheInvalidArgumentException(
                "Cache key cannot be empty", argument="key"
            )

        if len(self.key) > MAX_KEY_LENGTH:
            raise CacheInvalidArgumentException(
                f"Cache key too long (max {MAX_KEY_LENGTH} characters)", argument="key"
            )

        validate_region(self.region)

    @classmethod
    def of(
        cls, key: str, region: Optional[str] = None, default_region: str = DEFAULT_REGION
    ) -> "CacheKey":
        """Create a key, falling back to the default region."""
        return cls(key, region if region is not None else default_region)

    def as_tuple(self) -> Tuple[str, str]:
        return (self.region, self.key)

    def __str__(self) -> str:
        return f"{self.region}:{self.key}"


def _as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class CachePolicy:
    """
    Expiration policy stored alongside a cache entry.

    A zero sliding expiration disables sliding; an absolute expiration of None
    (or datetime.min) disables the absolute deadline. Change monitors are
    registered once when the entry is set and are never persisted.
    """

    sliding_expiration: timedelta = timedelta(0)
    absolute_expiration: Optional[datetime] = None
    change_monitors: Tuple["ChangeMonitor", ...] = field(default=(), compare=False)

    def __post_init__(self) -> None:
        """Validate and normalize policy values."""
        if not isinstance(self.sliding_expiration, timedelta):
            raise CacheInvalidArgumentException(
                "Sliding expiration must be a timedelta", argument="sliding_expiration"
            )
        if self.sliding_expiration < timedelta(0):
            raise CacheInvalidArgumentException(
                "Sliding expiration cannot be negative", argument="sliding_expiration"
            )

        absolute = self.absolute_expiration
        if absolute is not None:
            if not isinstance(absolute, datetime):
                raise CacheInvalidArgumentException(
                    "Absolute expiration must be a datetime",
                    argument="absolute_expiration",
                )
            if absolute.replace(tzinfo=None) == datetime.min:
                absolute = None
            else:
                absolute = _as_utc(absolute)
            object.__setattr__(self, "absolute_expiration", absolute)

        object.__setattr__(self, "change_monitors", tuple(self.change_monitors))

    @classmethod
    def sliding(cls, duration: timedelta) -> "CachePolicy":
        """Create a sliding-only policy."""
        return cls(sliding_expiration=duration)

    @classmethod
    def absolute(cls, deadline: datetime) -> "CachePolicy":
        """Create an absolute-only policy."""
        return cls(absolute_expiration=deadline)

    @property
    def has_sliding_expiration(self) -> bool:
        return self.sliding_expiration > timedelta(0)

    @property
    def has_absolute_expiration(self) -> bool:
        return self.absolute_expiration is not None

    def without_monitors(self) -> "CachePolicy":
        """Copy of this policy as it is persisted."""
        return CachePolicy(
            sliding_expiration=self.sliding_expiration,
            absolute_expiration=self.absolute_expiration,
        )

    def __str__(self) -> str:
        parts = []
        if self.has_sliding_expiration:
            parts.append(f"sliding={self.sliding_expiration.total_seconds()}s")
        if self.has_absolute_expiration:
            parts.append(f"absolute={self.absolute_expiration.isoformat()}")
        return ", ".join(parts) or "no expiration"
