"""In-process counting store with key expiry.

Notes:
- Per-process only: running multiple workers gives each its own counters,
  so quotas are no longer shared across instances.
- Thread-safe: uses a lock around shared state.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable

from rate_gate.adapters.store.base import AbstractCountingStore


@dataclass
class _Entry:
    value: int = 0
    expires_at: float | None = None
    fields: dict[str, str] = field(default_factory=dict)


class InMemoryCountingStore(AbstractCountingStore):
    """Counting store that keeps counters and config hashes in a dict.

    Mirrors the subset of Redis semantics the rate limiter relies on: INCR
    creates missing keys at 0, EXPIRE with a non-positive TTL deletes the key,
    and expired keys behave as absent.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        """Initialize an empty store.

        Args:
            clock: Time source function returning UNIX time in seconds.
        """
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, _Entry] = {}

    def _get_live_entry(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry

    def _set_expiry_locked(self, key: str, seconds: int) -> None:
        entry = self._get_live_entry(key)
        if entry is None:
            return
        if seconds <= 0:
            del self._entries[key]
            return
        entry.expires_at = self._clock() + seconds

    def incr(self, key: str) -> int:
        with self._lock:
            entry = self._get_live_entry(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.value += 1
            return entry.value

    def expire(self, key: str, seconds: int) -> None:
        with self._lock:
            self._set_expiry_locked(key, seconds)

    def incr_with_expiry(self, key: str, seconds: int) -> int:
        with self._lock:
            count = self.incr(key)
            if count == 1:
                self._set_expiry_locked(key, seconds)
            return count

    def hmget(self, key: str, fields: Sequence[str]) -> list[str | None]:
        with self._lock:
            entry = self._get_live_entry(key)
            if entry is None:
                return [None for _ in fields]
            return [entry.fields.get(name) for name in fields]

    def ping(self) -> None:
        return None

    def hset(self, key: str, mapping: dict[str, object]) -> None:
        """Write hash fields under ``key``, as an operator would with HSET."""
        with self._lock:
            entry = self._get_live_entry(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
            entry.fields.update({name: str(value) for name, value in mapping.items()})

    def ttl(self, key: str) -> float | None:
        """Return seconds until ``key`` expires, or None if it has no expiry or is absent."""
        with self._lock:
            entry = self._get_live_entry(key)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - self._clock()
