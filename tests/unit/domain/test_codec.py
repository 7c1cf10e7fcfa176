"""
Unit tests for the entry codec.

Tests the storage record layout and tolerant decoding of partial records.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest
from pydantic import BaseModel

from widecache.domain.cache.codec import EntryCodec
from widecache.domain.cache.entities import CacheEntry
from widecache.domain.cache.exceptions import (
    CacheDecodeException,
    CacheInvalidArgumentException,
)
from widecache.domain.cache.value_objects import CachePolicy

ADDED = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class Profile(BaseModel):
    name: str
    score: float
    tags: List[str] = []


@pytest.fixture
def codec():
    return EntryCodec(str)


@pytest.fixture
def entry():
    return CacheEntry(added=ADDED, last_accessed=ADDED + timedelta(minutes=1), value="hello")


class TestEncode:
    """Test record encoding."""

    def test_record_layout(self, codec, entry):
        """Test Item and Policy super columns with their fields."""
        policy = CachePolicy(
            sliding_expiration=timedelta(seconds=90),
            absolute_expiration=ADDED + timedelta(hours=1),
        )

        record = codec.encode(entry, policy)

        assert record == {
            "Item": {
                "Added": "2026-01-15T12:00:00+00:00",
                "LastAccessed": "2026-01-15T12:01:00+00:00",
                "Value": "hello",
            },
            "Policy": {
                "SlidingExpiration": 90.0,
                "AbsoluteExpiration": "2026-01-15T13:00:00+00:00",
            },
        }

    def test_disabled_absolute_expiration_is_null(self, codec, entry):
        record = codec.encode(entry, CachePolicy.sliding(timedelta(seconds=5)))
        assert record["Policy"]["AbsoluteExpiration"] is None

    def test_no_policy_omits_policy_columns(self, codec, entry):
        record = codec.encode(entry, None)
        assert "Policy" not in record
        assert "Item" in record

    def test_model_value_is_dumped_to_json_data(self, entry):
        codec = EntryCodec(Profile)
        entry.value = Profile(name="ada", score=9.5, tags=["x"])

        record = codec.encode(entry, None)

        assert record["Item"]["Value"] == {"name": "ada", "score": 9.5, "tags": ["x"]}

    def test_unserializable_value_rejected(self, entry):
        codec = EntryCodec(Profile)
        entry.value = object()

        with pytest.raises(CacheInvalidArgumentException, match="not serializable"):
            codec.encode(entry, None)

    @pytest.mark.parametrize(
        "value_type,value",
        [
            (int, "not-an-int"),
            (int, "5"),
            (str, 42),
            (Profile, {"name": "ada", "score": 9.5}),
        ],
    )
    def test_value_of_other_type_rejected(self, entry, value_type, value):
        """Test values are never coerced into the value type on encode."""
        codec = EntryCodec(value_type)
        entry.value = value

        with pytest.raises(CacheInvalidArgumentException) as exc_info:
            codec.encode(entry, None)

        assert exc_info.value.details["argument"] == "value"


class TestDecode:
    """Test record decoding."""

    def test_decode_full_record(self, codec, entry):
        policy = CachePolicy(
            sliding_expiration=timedelta(seconds=90),
            absolute_expiration=ADDED + timedelta(hours=1),
        )

        decoded = codec.decode(codec.encode(entry, policy))

        assert decoded.entry == entry
        assert decoded.policy == policy

    @pytest.mark.parametrize(
        "value_type,value",
        [
            (str, "TestString1"),
            (float, 3.25),
            (datetime, datetime(2025, 12, 24, 18, 0, tzinfo=timezone.utc)),
            (Profile, Profile(name="grace", score=7.0, tags=["a", "b"])),
        ],
    )
    def test_value_type_fidelity(self, value_type, value):
        """Test values come back as the cache's value type."""
        codec = EntryCodec(value_type)
        decoded = codec.decode(codec.encode(CacheEntry.create(value, ADDED), None))

        assert decoded.entry.value == value
        assert isinstance(decoded.entry.value, value_type)

    @pytest.mark.parametrize("record", [None, {}, {"Policy": {"SlidingExpiration": 1}}])
    def test_missing_item_is_absent(self, codec, record):
        assert codec.decode(record) is None

    def test_item_without_added_is_absent(self, codec):
        assert codec.decode({"Item": {"Value": "x"}}) is None

    def test_missing_policy_yields_no_policy(self, codec, entry):
        decoded = codec.decode(codec.encode(entry, None))
        assert decoded is not None
        assert decoded.policy is None

    def test_unreadable_policy_yields_no_policy(self, codec, entry):
        record = codec.encode(entry, None)
        record["Policy"] = {"SlidingExpiration": "soon", "AbsoluteExpiration": None}

        decoded = codec.decode(record)

        assert decoded.policy is None

    def test_missing_last_accessed_falls_back_to_added(self, codec):
        record = {"Item": {"Added": "2026-01-15T12:00:00+00:00", "Value": "v"}}

        decoded = codec.decode(record)

        assert decoded.entry.last_accessed == ADDED

    def test_naive_timestamps_are_utc(self, codec):
        record = {"Item": {"Added": "2026-01-15T12:00:00", "Value": "v"}}
        assert codec.decode(record).entry.added == ADDED

    def test_min_absolute_expiration_means_disabled(self, codec, entry):
        record = codec.encode(entry, None)
        record["Policy"] = {
            "SlidingExpiration": 0,
            "AbsoluteExpiration": "0001-01-01T00:00:00+00:00",
        }

        decoded = codec.decode(record)

        assert decoded.policy is not None
        assert decoded.policy.absolute_expiration is None

    def test_value_of_wrong_type_raises(self):
        codec = EntryCodec(Profile)
        record = {"Item": {"Added": "2026-01-15T12:00:00+00:00", "Value": "not a profile"}}

        with pytest.raises(CacheDecodeException) as exc_info:
            codec.decode(record, key="profile:1")

        assert exc_info.value.details["key"] == "profile:1"
        assert exc_info.value.details["value_type"] == "Profile"
