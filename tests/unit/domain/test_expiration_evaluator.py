"""
Unit tests for the expiration evaluator.

Tests the fixed evaluation order: sliding first, absolute deadline second.
"""

from datetime import datetime, timedelta, timezone

import pytest

from widecache.domain.cache.domain_services import ExpirationEvaluator
from widecache.domain.cache.entities import CacheEntry
from widecache.domain.cache.value_objects import CachePolicy, ExpirationOutcome

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def entry_idle_for(delta: timedelta) -> CacheEntry:
    accessed = NOW - delta
    return CacheEntry(added=accessed - timedelta(hours=1), last_accessed=accessed, value="v")


class TestExpirationEvaluator:
    """Test ExpirationEvaluator domain service."""

    def test_no_policy_is_valid(self):
        entry = entry_idle_for(timedelta(days=365))
        assert ExpirationEvaluator.evaluate(entry, None, NOW) is ExpirationOutcome.VALID

    def test_empty_policy_is_valid(self):
        entry = entry_idle_for(timedelta(days=365))
        assert ExpirationEvaluator.evaluate(entry, CachePolicy(), NOW) is ExpirationOutcome.VALID

    def test_sliding_within_window_refreshes(self):
        policy = CachePolicy.sliding(timedelta(minutes=10))
        entry = entry_idle_for(timedelta(minutes=5))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.VALID_REFRESH

    def test_sliding_exactly_at_window_is_still_valid(self):
        """Test expiry requires elapsed time strictly greater than the window."""
        policy = CachePolicy.sliding(timedelta(minutes=10))
        entry = entry_idle_for(timedelta(minutes=10))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.VALID_REFRESH

    def test_sliding_lapsed_expires(self):
        policy = CachePolicy.sliding(timedelta(minutes=10))
        entry = entry_idle_for(timedelta(minutes=10, seconds=1))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.EXPIRED

    def test_sliding_lapsed_wins_over_future_absolute(self):
        """Test an absolute-valid but sliding-expired entry is expired."""
        policy = CachePolicy(
            sliding_expiration=timedelta(minutes=1),
            absolute_expiration=NOW + timedelta(days=1),
        )
        entry = entry_idle_for(timedelta(minutes=2))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.EXPIRED

    def test_passed_absolute_overrides_sliding_valid(self):
        """Test a sliding-valid entry still expires at its absolute deadline."""
        policy = CachePolicy(
            sliding_expiration=timedelta(minutes=10),
            absolute_expiration=NOW - timedelta(seconds=1),
        )
        entry = entry_idle_for(timedelta(seconds=1))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.EXPIRED

    def test_future_absolute_without_sliding_is_valid(self):
        policy = CachePolicy.absolute(NOW + timedelta(seconds=1))
        entry = entry_idle_for(timedelta(days=30))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.VALID

    def test_absolute_equal_to_now_is_valid(self):
        policy = CachePolicy.absolute(NOW)
        entry = entry_idle_for(timedelta(0))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.VALID

    def test_future_absolute_with_valid_sliding_refreshes(self):
        policy = CachePolicy(
            sliding_expiration=timedelta(minutes=10),
            absolute_expiration=NOW + timedelta(hours=1),
        )
        entry = entry_idle_for(timedelta(minutes=1))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.VALID_REFRESH

    @pytest.mark.parametrize("idle_minutes", [0, 5, 60, 60 * 24 * 365])
    def test_past_absolute_always_expires(self, idle_minutes):
        policy = CachePolicy.absolute(NOW - timedelta(minutes=1))
        entry = entry_idle_for(timedelta(minutes=idle_minutes))

        assert ExpirationEvaluator.evaluate(entry, policy, NOW) is ExpirationOutcome.EXPIRED
