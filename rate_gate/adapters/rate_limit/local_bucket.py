"""Process-local fallback rate limiter.

Notes:
- Per-process only: each instance enforces its own copy of the quota.
- Thread-safe with one lock per key; buckets for different keys never block
  each other.
- Buckets are created lazily and never evicted. Capacity and window are
  fixed from the config seen on first use of a key.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from rate_gate.adapters.rate_limit.base import RateLimitConfig, RateLimitStrategy


@dataclass(frozen=True)
class BucketState:
    """Point-in-time copy of a bucket's counters."""

    capacity: int
    remaining: int
    reset_at: float


@dataclass
class _Bucket:
    capacity: int
    remaining: int
    window_seconds: int
    reset_at: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def take(self, now: float) -> bool:
        with self.lock:
            if now > self.reset_at:
                self.remaining = self.capacity
                self.reset_at = now + self.window_seconds
            if self.remaining > 0:
                self.remaining -= 1
                return True
            return False


class LocalFallbackBucket(RateLimitStrategy):
    """Rate limiter keeping one fixed-window bucket per key in memory."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize with no buckets.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        # Guards bucket creation only; decisions run under the bucket's own lock.
        self._registry_lock = threading.Lock()

    def _get_or_create_bucket(self, key: str, config: RateLimitConfig) -> _Bucket:
        bucket = self._buckets.get(key)
        if bucket is not None:
            return bucket

        with self._registry_lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                capacity = max(0, config.max_requests)
                bucket = _Bucket(
                    capacity=capacity,
                    remaining=capacity,
                    window_seconds=config.window_seconds,
                    reset_at=self._clock() + config.window_seconds,
                )
                self._buckets[key] = bucket
            return bucket

    def allow(self, key: str, config: RateLimitConfig) -> bool:
        bucket = self._get_or_create_bucket(key, config)
        return bucket.take(self._clock())

    def snapshot(self, key: str) -> BucketState | None:
        """Return a copy of the bucket for ``key``, or None if it was never used."""
        bucket = self._buckets.get(key)
        if bucket is None:
            return None
        with bucket.lock:
            return BucketState(
                capacity=bucket.capacity,
                remaining=bucket.remaining,
                reset_at=bucket.reset_at,
            )

    def __len__(self) -> int:
        return len(self._buckets)
