"""
Expiring Cache Service

Public facade of the cache. Composes the entry codec, the expiration
evaluator and the change monitor bridge over an abstract CacheStore.

Expiration is lazy: entries are only checked, refreshed or deleted inside a
read. No operation here is atomic across its storage calls; a sliding refresh
or add_or_get_existing may race with concurrent writers.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    Optional,
    Type,
    TypeVar,
    Union,
)

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from ...constants import get_current_timestamp
from ...core.config import Settings, get_settings
from ...domain.cache.codec import EntryCodec
from ...domain.cache.domain_services import ExpirationEvaluator
from ...domain.cache.entities import CacheEntry, CacheItem
from ...domain.cache.exceptions import (
    CacheDecodeException,
    CacheException,
    CacheInvalidArgumentException,
    CacheOperationNotSupportedException,
)
from ...domain.cache.repository_interfaces import CacheStore
from ...domain.cache.value_objects import (
    CacheCapabilities,
    CacheKey,
    CachePolicy,
    ExpirationOutcome,
    validate_region,
)
from .change_monitor_bridge import ChangeMonitorRegistry

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

PolicyLike = Union[CachePolicy, datetime, None]
Clock = Callable[[], datetime]


class ExpiringCache(Generic[T]):
    """
    Expiring, out-of-process cache for values of one type.

    Args:
        store: Storage collaborator holding the records
        value_type: Type of every cached value; drives serialization
        settings: Cache settings, defaults to get_settings()
        clock: Callable returning the current time, defaults to UTC now
        name: Cache name reported by the name property
        owns_store: Close the store together with the cache
    """

    def __init__(
        self,
        store: CacheStore,
        value_type: Type[T],
        *,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        name: str = "ExpiringCache",
        owns_store: bool = False,
    ):
        if store is None:
            raise CacheInvalidArgumentException("store is required", argument="store")
        if not name or not name.strip():
            raise CacheInvalidArgumentException("name cannot be empty", argument="name")

        self.store = store
        self.settings = settings or get_settings()
        self.codec: EntryCodec[T] = EntryCodec(value_type)
        self.evaluator = ExpirationEvaluator()
        self.monitors = ChangeMonitorRegistry(self._evict)
        self._clock = clock or get_current_timestamp
        self._name = name
        self._owns_store = owns_store
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def default_cache_capabilities(self) -> CacheCapabilities:
        return (
            CacheCapabilities.OUT_OF_PROCESS_PROVIDER
            | CacheCapabilities.ABSOLUTE_EXPIRATIONS
            | CacheCapabilities.SLIDING_EXPIRATIONS
            | CacheCapabilities.CACHE_REGIONS
            | CacheCapabilities.CACHE_ENTRY_CHANGE_MONITORS
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _key(self, key: str, region: Optional[str]) -> CacheKey:
        return CacheKey.of(key, region, default_region=self.settings.default_region)

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    @staticmethod
    def _coerce_policy(policy: PolicyLike) -> Optional[CachePolicy]:
        if policy is None or isinstance(policy, CachePolicy):
            return policy
        if isinstance(policy, datetime):
            return CachePolicy.absolute(policy)
        raise CacheInvalidArgumentException(
            f"Unsupported policy type: {type(policy).__name__}", argument="policy"
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise CacheException(
                f"Cache '{self._name}' is closed", error_code="CACHE_CLOSED"
            )

    @contextmanager
    def _span(self, operation: str, cache_key: Optional[CacheKey] = None) -> Iterator:
        with tracer.start_as_current_span(f"cache.{operation}") as span:
            span.set_attribute("cache.name", self._name)
            if cache_key is not None:
                span.set_attribute("cache.region", cache_key.region)
                span.set_attribute("cache.key", cache_key.key)
            try:
                yield span
            except Exception as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get(self, key: str, region: Optional[str] = None) -> Optional[T]:
        """
        Get a value, applying expiration.

        Expired entries are deleted and reported as None. A sliding hit
        persists the refreshed last access time before returning.
        """
        cache_key = self._key(key, region)
        self._ensure_open()
        with self._span("get", cache_key) as span:
            return await self._get(cache_key, span)

    async def _get(self, cache_key: CacheKey, span) -> Optional[T]:
        region, key = cache_key.as_tuple()

        record = await self.store.read(region, key)
        decoded = self.codec.decode(record, key=key)
        if decoded is None:
            span.set_attribute("cache.outcome", "miss")
            logger.debug("Cache miss", region=region, key=key)
            return None

        now = self._now()
        outcome = self.evaluator.evaluate(decoded.entry, decoded.policy, now)
        span.set_attribute("cache.outcome", outcome.value)

        if outcome is ExpirationOutcome.EXPIRED:
            await self.store.delete(region, key)
            logger.debug("Cache entry expired", region=region, key=key)
            return None

        if outcome is ExpirationOutcome.VALID_REFRESH:
            decoded.entry.touch(now)
            await self.store.write(
                region, key, self.codec.encode(decoded.entry, decoded.policy)
            )

        logger.debug("Cache hit", region=region, key=key, outcome=outcome.value)
        return decoded.entry.value

    async def contains(self, key: str, region: Optional[str] = None) -> bool:
        """Check whether a live value exists (may evict an expired one)."""
        return await self.get(key, region) is not None

    async def get_cache_item(
        self, key: str, region: Optional[str] = None
    ) -> Optional[CacheItem[T]]:
        value = await self.get(key, region)
        if value is None:
            return None
        return CacheItem(key=key, value=value, region=region)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def set(
        self,
        key: str,
        value: T,
        policy: PolicyLike = None,
        region: Optional[str] = None,
    ) -> None:
        """
        Insert or overwrite a value.

        Args:
            key: Cache key
            value: Value to store; None is rejected unless CACHE_ALLOW_NONE_NOOP
            policy: CachePolicy, an absolute expiration datetime, or None for
                an entry that never expires
            region: Region name, defaults to the configured default region
        """
        cache_key = self._key(key, region)

        if value is None:
            if self.settings.CACHE_ALLOW_NONE_NOOP:
                logger.warning(
                    "Ignoring set() with a None value",
                    region=cache_key.region,
                    key=cache_key.key,
                )
                return
            raise CacheInvalidArgumentException(
                "Cache value cannot be None", argument="value"
            )

        cache_policy = self._coerce_policy(policy)
        if cache_policy and cache_policy.change_monitors:
            self.monitors.validate(cache_policy.change_monitors)
        self._ensure_open()

        with self._span("set", cache_key) as span:
            entry = CacheEntry.create(value, self._now())
            stored_policy = cache_policy.without_monitors() if cache_policy else None
            record = self.codec.encode(entry, stored_policy)

            await self.store.write(cache_key.region, cache_key.key, record)

            if cache_policy and cache_policy.change_monitors:
                span.set_attribute(
                    "cache.change_monitors", len(cache_policy.change_monitors)
                )
                self.monitors.register(cache_policy.change_monitors, cache_key)

            logger.debug(
                "Cache entry set",
                region=cache_key.region,
                key=cache_key.key,
                policy=str(stored_policy) if stored_policy else "none",
            )

    async def set_item(self, item: CacheItem[T], policy: PolicyLike = None) -> None:
        if item is None:
            raise CacheInvalidArgumentException("item is required", argument="item")
        await self.set(item.key, item.value, policy, item.region)

    async def add_or_get_existing(
        self,
        key: str,
        value: T,
        policy: PolicyLike = None,
        region: Optional[str] = None,
    ) -> T:
        """
        Return the live value for key, or store value and return it.

        Not atomic: two concurrent callers may both miss and both write.
        """
        if value is None:
            raise CacheInvalidArgumentException(
                "Cache value cannot be None", argument="value"
            )

        existing = await self.get(key, region)
        if existing is not None:
            return existing

        await self.set(key, value, policy, region)
        return value

    async def add_or_get_existing_item(
        self, item: CacheItem[T], policy: PolicyLike = None
    ) -> CacheItem[T]:
        if item is None:
            raise CacheInvalidArgumentException("item is required", argument="item")
        value = await self.add_or_get_existing(item.key, item.value, policy, item.region)
        return CacheItem(key=item.key, value=value, region=item.region)

    # -------------------------------------------------------------------------
    # Removal
    # -------------------------------------------------------------------------

    async def remove(self, key: str, region: Optional[str] = None) -> Optional[T]:
        """
        Remove an entry and return the value it held.

        Returns None without writing when the key is absent or already expired.
        A record whose value cannot be decoded is deleted before the
        CacheDecodeException propagates.
        """
        cache_key = self._key(key, region)
        self._ensure_open()
        with self._span("remove", cache_key) as span:
            try:
                value = await self._get(cache_key, span)
            except CacheDecodeException:
                await self.store.delete(cache_key.region, cache_key.key)
                logger.warning(
                    "Removed undecodable cache entry",
                    region=cache_key.region,
                    key=cache_key.key,
                )
                raise
            if value is None:
                return None

            await self.store.delete(cache_key.region, cache_key.key)
            logger.debug("Cache entry removed", region=cache_key.region, key=cache_key.key)
            return value

    async def _evict(self, cache_key: CacheKey) -> None:
        """Unconditional delete used by change monitors."""
        with self._span("evict", cache_key):
            await self.store.delete(cache_key.region, cache_key.key)

    async def clean_cache(
        self, region: Optional[str] = None, max_age: Optional[Any] = None
    ) -> None:
        """
        Delete every entry of a region.

        Retaining recently added entries (max_age) is not implemented and is
        rejected rather than ignored.
        """
        if max_age is not None:
            raise CacheOperationNotSupportedException(
                "clean_cache(max_age)",
                reason="retaining recently added entries is not implemented",
            )

        region_name = validate_region(
            region if region is not None else self.settings.default_region
        )
        self._ensure_open()
        with self._span("clean") as span:
            span.set_attribute("cache.region", region_name)
            await self.store.delete_all(region_name)
            logger.info("Cache region cleaned", region=region_name)

    # -------------------------------------------------------------------------
    # Unsupported by this storage model
    # -------------------------------------------------------------------------

    async def get_count(self, region: Optional[str] = None) -> int:
        raise CacheOperationNotSupportedException(
            "get_count", reason="counting entries requires a full scan"
        )

    async def get_values(
        self, keys: Iterable[str], region: Optional[str] = None
    ) -> Dict[str, T]:
        raise CacheOperationNotSupportedException("get_values")

    def __aiter__(self) -> AsyncIterator:
        raise CacheOperationNotSupportedException(
            "enumeration", reason="keys cannot be enumerated"
        )

    def create_cache_entry_change_monitor(
        self, keys: Iterable[str], region: Optional[str] = None
    ):
        raise CacheOperationNotSupportedException("create_cache_entry_change_monitor")

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Dispose change monitors; close the store when owned."""
        if self._closed:
            return
        self._closed = True

        await self.monitors.close()
        if self._owns_store:
            await self.store.close()

        logger.debug("Cache closed", name=self._name)

    async def __aenter__(self) -> "ExpiringCache[T]":
        # A borrowed store is initialized and closed by its owner
        if self._owns_store:
            await self.store.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
