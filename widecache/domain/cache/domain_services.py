"""
Cache Domain Services

Business logic for deciding the fate of a cache entry at read time.
"""

from datetime import datetime
from typing import Optional

from .entities import CacheEntry
from .value_objects import CachePolicy, ExpirationOutcome


class ExpirationEvaluator:
    """
    Domain service for lazy expiration.

    Pure decision logic: no storage access, no clock of its own.
    """

    @staticmethod
    def evaluate(
        entry: CacheEntry, policy: Optional[CachePolicy], now: datetime
    ) -> ExpirationOutcome:
        """
        Decide whether an entry is valid, valid but due a sliding refresh, or expired.

        Sliding expiration is checked first and wins outright when it has
        lapsed. A passed absolute deadline then overrides a sliding-valid result.

        Args:
            entry: Entry as read from storage
            policy: Stored policy, None when the record carried none
            now: Evaluation time

        Returns:
            ExpirationOutcome for the entry
        """
        if policy is None:
            return ExpirationOutcome.VALID

        outcome = ExpirationOutcome.VALID

        if policy.has_sliding_expiration:
            if entry.idle_for(now) > policy.sliding_expiration:
                return ExpirationOutcome.EXPIRED
            outcome = ExpirationOutcome.VALID_REFRESH

        if policy.has_absolute_expiration and policy.absolute_expiration < now:
            return ExpirationOutcome.EXPIRED

        return outcome
