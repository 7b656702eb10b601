"""Distributed fixed-window rate limiter.

Notes:
- Shared: every instance increments the same counter in the counting store,
  so the quota holds across the whole fleet.
- The window resets when the store expires the counter; the next increment
  starts a new window at 1.
- Every call is counted, including calls that end up denied.
"""

from __future__ import annotations

from rate_gate.adapters.rate_limit.base import RateLimitConfig, RateLimitStrategy
from rate_gate.adapters.store.base import AbstractCountingStore


class FixedWindowCounter(RateLimitStrategy):
    """Rate limiter using a shared, store-expired counter per key.

    Store failures are not handled here; they propagate to the caller.
    """

    def __init__(
        self,
        store: AbstractCountingStore,
        *,
        key_prefix: str = "rl:",
        atomic_expiry: bool = False,
    ) -> None:
        """Initialize the fixed-window counter.

        Args:
            store: Shared counting store.
            key_prefix: Prefix for counter keys in the store.
            atomic_expiry: Increment and set expiry in one store call instead
                of INCR followed by EXPIRE when the counter is created.
        """
        self._store = store
        self._key_prefix = key_prefix
        self._atomic_expiry = atomic_expiry

    def counter_key(self, key: str) -> str:
        """Return the store key holding the counter for ``key``."""
        return f"{self._key_prefix}{key}"

    def allow(self, key: str, config: RateLimitConfig) -> bool:
        store_key = self.counter_key(key)

        if self._atomic_expiry:
            count = self._store.incr_with_expiry(store_key, config.window_seconds)
        else:
            count = self._store.incr(store_key)
            if count == 1:
                # A crash right here leaves the counter without a TTL.
                self._store.expire(store_key, config.window_seconds)

        return count <= config.max_requests
