"""Counting store interface.

Strategies and the config resolver talk to the shared key/value store only
through this abstraction, so the Redis client can be swapped for the
in-process store in development and tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class AbstractCountingStore(ABC):
    """Minimal capability set required from the shared counting store."""

    @abstractmethod
    def incr(self, key: str) -> int:
        """Atomically increment ``key`` (creating it at 0) and return the new value."""
        raise NotImplementedError

    @abstractmethod
    def expire(self, key: str, seconds: int) -> None:
        """Set ``key`` to expire ``seconds`` from now."""
        raise NotImplementedError

    @abstractmethod
    def incr_with_expiry(self, key: str, seconds: int) -> int:
        """Increment ``key`` and, if this created it, set its expiry in the same step.

        Args:
            key: Counter key.
            seconds: Expiry applied only when the post-increment value is 1.

        Returns:
            The post-increment value.
        """
        raise NotImplementedError

    @abstractmethod
    def hmget(self, key: str, fields: Sequence[str]) -> list[str | None]:
        """Read hash ``fields`` under ``key``; missing fields come back as None."""
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> None:
        """Check connectivity; raise StoreUnavailableError if the store is unreachable."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any connections held by the store. No-op by default."""
        return None
