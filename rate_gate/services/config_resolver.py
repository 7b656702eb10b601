"""Per-key rate limit configuration lookup with safe defaults.

Configs are stored as hashes under ``rate_config:<key>`` with the fields
``maxRequests``, ``windowInSec`` and ``strategy``. Resolution never fails:
missing fields fall back individually, while any failure of the lookup itself
(store down, timeout, unparseable number) falls back to the complete default
config so partial results are never mixed with defaults.
"""

from __future__ import annotations

import hashlib
import logging
import re

from rate_gate.adapters.rate_limit.base import RateLimitConfig
from rate_gate.adapters.store.base import AbstractCountingStore
from rate_gate.core.errors import ConfigLookupError

logger = logging.getLogger(__name__)

DEFAULT_MAX_REQUESTS = 5
DEFAULT_WINDOW_SECONDS = 60
DEFAULT_STRATEGY = "FIXED"

CONFIG_KEY_PREFIX = "rate_config:"
CONFIG_FIELDS = ("maxRequests", "windowInSec", "strategy")

# Numeric fields are signed 32-bit decimal integers with no padding.
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def hash_limiter_key(key: str) -> str:
    """Hash a rate limit key for logging without exposing user identifiers."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def _parse_int(field_name: str, raw: str | None, default: int) -> int:
    """Parse a numeric config field, using ``default`` when it is absent.

    Raises:
        ConfigLookupError: If the field is present but not a 32-bit integer.
    """
    if raw is None:
        return default
    if _INT_PATTERN.fullmatch(raw) is not None:
        value = int(raw)
        if INT32_MIN <= value <= INT32_MAX:
            return value
    raise ConfigLookupError(
        code="config_malformed_field",
        message=f"Rate limit config field {field_name!r} is not a 32-bit integer",
        details={"field": field_name, "raw_value": raw[:32]},
    )


class ConfigResolver:
    """Resolve the effective RateLimitConfig for a key.

    Configs are read on every call; nothing is cached here.
    """

    def __init__(
        self,
        store: AbstractCountingStore,
        *,
        key_prefix: str = CONFIG_KEY_PREFIX,
        default_max_requests: int = DEFAULT_MAX_REQUESTS,
        default_window_seconds: int = DEFAULT_WINDOW_SECONDS,
        default_strategy: str = DEFAULT_STRATEGY,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Store holding per-key config hashes.
            key_prefix: Prefix for config hash keys.
            default_max_requests: Used when ``maxRequests`` is absent or lookup fails.
            default_window_seconds: Used when ``windowInSec`` is absent or lookup fails.
            default_strategy: Used when ``strategy`` is absent or lookup fails.
        """
        self._store = store
        self._key_prefix = key_prefix
        self._defaults = RateLimitConfig(
            max_requests=default_max_requests,
            window_seconds=default_window_seconds,
            strategy_name=default_strategy,
        )

    @property
    def defaults(self) -> RateLimitConfig:
        return self._defaults

    def config_key(self, key: str) -> str:
        """Return the store key of the config hash for ``key``."""
        return f"{self._key_prefix}{key}"

    def _lookup(self, key: str) -> RateLimitConfig:
        """Read and parse the config hash.

        Raises:
            ConfigLookupError: If the store call fails or a field cannot be parsed.
        """
        store_key = self.config_key(key)
        try:
            max_raw, window_raw, strategy_raw = self._store.hmget(store_key, CONFIG_FIELDS)
        except Exception as exc:
            raise ConfigLookupError(
                code="config_lookup_failed",
                message=f"Rate limit config lookup failed: {exc}",
                details={"store_key": store_key},
            ) from exc

        return RateLimitConfig(
            max_requests=_parse_int("maxRequests", max_raw, self._defaults.max_requests),
            window_seconds=_parse_int("windowInSec", window_raw, self._defaults.window_seconds),
            strategy_name=strategy_raw if strategy_raw is not None else self._defaults.strategy_name,
        )

    def get_config(self, key: str) -> RateLimitConfig:
        """Return the effective config for ``key``.

        Never raises; a failed lookup yields the full default config.

        Args:
            key: Rate limit key.

        Returns:
            RateLimitConfig: Resolved or default configuration.
        """
        try:
            return self._lookup(key)
        except ConfigLookupError as exc:
            logger.warning(
                "rate_limit.config_defaulted",
                extra={
                    "key_hash": hash_limiter_key(key),
                    "error_code": exc.code,
                    "error_message": exc.message,
                },
            )
            return self._defaults
