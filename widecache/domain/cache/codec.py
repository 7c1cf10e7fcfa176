"""
Cache Entry Codec

Maps a typed entry and its policy to the storage record shape and back.
Values are serialized through a pydantic TypeAdapter bound to the cache's
value type, so any type pydantic can dump to JSON-compatible data is cacheable.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Generic, Mapping, Optional, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ...constants import ITEM_SUPER_COLUMN, POLICY_SUPER_COLUMN
from .entities import CacheEntry, DecodedEntry
from .exceptions import CacheDecodeException, CacheInvalidArgumentException
from .repository_interfaces import StorageRecord
from .value_objects import CachePolicy

T = TypeVar("T")

ADDED = "Added"
LAST_ACCESSED = "LastAccessed"
VALUE = "Value"
SLIDING_EXPIRATION = "SlidingExpiration"
ABSOLUTE_EXPIRATION = "AbsoluteExpiration"

_timestamp_adapter = TypeAdapter(datetime)


def _encode_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _decode_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    parsed = _timestamp_adapter.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class EntryCodec(Generic[T]):
    """
    Pure transformation between (entry, policy) and storage records.

    The value type is fixed per codec instance.
    """

    def __init__(self, value_type: Type[T]):
        self.value_type = value_type
        self._adapter: TypeAdapter = TypeAdapter(value_type)

    @property
    def type_name(self) -> str:
        return getattr(self.value_type, "__name__", repr(self.value_type))

    def encode(
        self, entry: CacheEntry[T], policy: Optional[CachePolicy]
    ) -> StorageRecord:
        """
        Encode an entry and its policy into a storage record.

        The value must already be an instance of the value type; nothing is
        coerced on the way in.
        """
        try:
            self._adapter.validate_python(entry.value, strict=True)
            value = self._adapter.dump_python(entry.value, mode="json")
        except (ValueError, TypeError) as e:
            raise CacheInvalidArgumentException(
                f"Value is not serializable as {self.type_name}: {e}",
                argument="value",
            ) from e

        record: StorageRecord = {
            ITEM_SUPER_COLUMN: {
                ADDED: _encode_timestamp(entry.added),
                LAST_ACCESSED: _encode_timestamp(entry.last_accessed),
                VALUE: value,
            }
        }

        if policy is not None:
            record[POLICY_SUPER_COLUMN] = {
                SLIDING_EXPIRATION: policy.sliding_expiration.total_seconds(),
                ABSOLUTE_EXPIRATION: _encode_timestamp(policy.absolute_expiration),
            }

        return record

    def decode(
        self, record: Optional[Mapping[str, Any]], key: Optional[str] = None
    ) -> Optional[DecodedEntry[T]]:
        """
        Decode a storage record.

        Returns None when the record or its Item columns are missing. A missing
        or unreadable Policy yields policy=None. A value that does not validate
        against the value type raises CacheDecodeException.
        """
        if not record:
            return None

        item = record.get(ITEM_SUPER_COLUMN)
        if not isinstance(item, Mapping) or ADDED not in item:
            return None

        try:
            added = _decode_timestamp(item.get(ADDED))
            last_accessed = _decode_timestamp(item.get(LAST_ACCESSED)) or added
        except ValidationError as e:
            raise CacheDecodeException(key=key, original_error=e) from e

        if added is None:
            return None

        try:
            value = self._adapter.validate_python(item.get(VALUE))
        except ValidationError as e:
            raise CacheDecodeException(
                key=key, value_type=self.type_name, original_error=e
            ) from e

        entry = CacheEntry(added=added, last_accessed=last_accessed, value=value)
        return DecodedEntry(entry=entry, policy=self._decode_policy(record))

    @staticmethod
    def _decode_policy(record: Mapping[str, Any]) -> Optional[CachePolicy]:
        policy = record.get(POLICY_SUPER_COLUMN)
        if not isinstance(policy, Mapping):
            return None

        try:
            sliding_seconds = float(policy.get(SLIDING_EXPIRATION) or 0)
            absolute = _decode_timestamp(policy.get(ABSOLUTE_EXPIRATION))
            return CachePolicy(
                sliding_expiration=timedelta(seconds=sliding_seconds),
                absolute_expiration=absolute,
            )
        except (TypeError, ValueError, OverflowError):
            # Unreadable policy columns behave like no policy at all
            return None
