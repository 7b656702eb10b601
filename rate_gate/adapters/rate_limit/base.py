"""Rate limiting strategy interface.

The decision engine depends on this abstraction (not the concrete
implementations) so strategies can be selected per key at runtime.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitConfig:
    """Effective quota for a single rate limit key.

    Values are passed through as parsed; out-of-range numbers are not
    corrected here.

    Attributes:
        max_requests: Requests allowed per window.
        window_seconds: Window length in seconds.
        strategy_name: Name of the strategy that enforces the quota.
    """

    max_requests: int
    window_seconds: int
    strategy_name: str


class RateLimitStrategy(ABC):
    """Interface for rate limiting strategies."""

    @abstractmethod
    def allow(self, key: str, config: RateLimitConfig) -> bool:
        """Decide whether one more request for ``key`` fits the quota.

        Args:
            key: Rate limit key (exact match, not normalized).
            config: Quota to enforce.

        Returns:
            True when the request is allowed, False when it must be rejected.
        """
        raise NotImplementedError
