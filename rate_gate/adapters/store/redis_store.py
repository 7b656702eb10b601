"""Redis counting store adapter."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import redis
from redis.backoff import NoBackoff
from redis.retry import Retry

from rate_gate.adapters.store.base import AbstractCountingStore
from rate_gate.core.errors import StoreTimeoutError, StoreUnavailableError

# INCR and EXPIRE-on-create executed atomically server-side, so a crash
# between the two steps cannot leave a counter without a TTL.
INCR_WITH_EXPIRY_SCRIPT = """
    local count = redis.call('INCR', KEYS[1])
    if count == 1 then
        redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
    end
    return count
"""


class RedisCountingStore(AbstractCountingStore):
    """Counting store backed by a Redis server.

    Every command is a single attempt bounded by the client socket timeouts.
    Redis client errors are translated into StoreTimeoutError or
    StoreUnavailableError so callers never depend on redis exception types.
    """

    def __init__(
        self,
        client: redis.Redis,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        """Wrap an existing Redis client.

        Args:
            client: Redis client created with ``decode_responses=True``.
            timeout_seconds: Configured command timeout, reported in error details.
        """
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._incr_with_expiry = client.register_script(INCR_WITH_EXPIRY_SCRIPT)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        socket_timeout_seconds: float,
        socket_connect_timeout_seconds: float,
    ) -> "RedisCountingStore":
        """Build a store from a Redis URL with bounded, non-retrying calls.

        Args:
            url: Redis connection URL (``redis://host:port/db``).
            socket_timeout_seconds: Timeout for each command.
            socket_connect_timeout_seconds: Timeout for connection setup.

        Returns:
            RedisCountingStore: Store with a lazily connecting client.
        """
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout_seconds,
            socket_connect_timeout=socket_connect_timeout_seconds,
            retry_on_timeout=False,
            retry=Retry(NoBackoff(), 0),
        )
        return cls(client, timeout_seconds=socket_timeout_seconds)

    @contextmanager
    def _translate_errors(self, operation: str, key: str) -> Iterator[None]:
        try:
            yield
        except redis.TimeoutError as exc:
            raise StoreTimeoutError(
                code="store_timeout",
                message=f"Counting store timed out during {operation}",
                details={
                    "operation": operation,
                    "store_key": key,
                    "timeout_seconds": self._timeout_seconds or 0.0,
                },
            ) from exc
        except redis.RedisError as exc:
            raise StoreUnavailableError(
                code="store_unavailable",
                message=f"Counting store error during {operation}: {exc}",
                details={"operation": operation, "store_key": key},
            ) from exc

    def incr(self, key: str) -> int:
        with self._translate_errors("incr", key):
            return int(self._client.incr(key))

    def expire(self, key: str, seconds: int) -> None:
        with self._translate_errors("expire", key):
            self._client.expire(key, seconds)

    def incr_with_expiry(self, key: str, seconds: int) -> int:
        with self._translate_errors("incr_with_expiry", key):
            return int(self._incr_with_expiry(keys=[key], args=[seconds]))

    def hmget(self, key: str, fields: Sequence[str]) -> list[str | None]:
        with self._translate_errors("hmget", key):
            return list(self._client.hmget(key, list(fields)))

    def ping(self) -> None:
        with self._translate_errors("ping", ""):
            self._client.ping()

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()
