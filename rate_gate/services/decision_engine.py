"""Admission decision pipeline.

Resolves the key's config, selects the strategy named by it, and asks the
strategy for a verdict. The whole pipeline sits behind one error boundary:
any failure lets the request through (fail-open) and leaves the outcome
metrics untouched. No step is retried.
"""

from __future__ import annotations

import logging

from rate_gate.adapters.rate_limit.selector import StrategySelector
from rate_gate.core.metrics import MetricsSink
from rate_gate.services.config_resolver import ConfigResolver, hash_limiter_key

logger = logging.getLogger(__name__)


class DecisionEngine:
    """Single entry point deciding ALLOW or DENY for a rate limit key."""

    def __init__(
        self,
        *,
        config_resolver: ConfigResolver,
        selector: StrategySelector,
        metrics: MetricsSink,
    ) -> None:
        self._config_resolver = config_resolver
        self._selector = selector
        self._metrics = metrics

    def decide(self, key: str) -> bool:
        """Decide whether the request identified by ``key`` may proceed.

        Never raises. On success exactly one of the allowed/blocked metrics is
        incremented; on any internal failure the request is allowed and no
        metric changes.

        Args:
            key: Rate limit key built by the caller (e.g. ``"<user>:<path>"``).

        Returns:
            True to let the request through, False to reject it.
        """
        try:
            config = self._config_resolver.get_config(key)
            strategy = self._selector.select(config.strategy_name)
            allowed = strategy.allow(key, config)
            if allowed:
                self._metrics.record_allowed()
            else:
                self._metrics.record_blocked()
        except Exception as exc:
            logger.warning(
                "rate_limit.fail_open",
                extra={
                    "key_hash": hash_limiter_key(key),
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            return True

        log_extra = {
            "key_hash": hash_limiter_key(key),
            "strategy": config.strategy_name,
            "limit": config.max_requests,
            "window_s": config.window_seconds,
        }
        if allowed:
            logger.debug("rate_limit.allowed", extra=log_extra)
        else:
            logger.info("rate_limit.blocked", extra=log_extra)
        return allowed
