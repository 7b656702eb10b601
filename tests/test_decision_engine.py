"""Tests for the decision pipeline and its fail-open policy."""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from rate_gate.adapters.rate_limit.base import RateLimitStrategy
from rate_gate.adapters.rate_limit.fixed_window import FixedWindowCounter
from rate_gate.adapters.rate_limit.local_bucket import LocalFallbackBucket
from rate_gate.adapters.rate_limit.selector import StrategySelector
from rate_gate.core.errors import StoreTimeoutError, StoreUnavailableError
from rate_gate.core.metrics import MetricsSink
from rate_gate.services.config_resolver import ConfigResolver
from rate_gate.services.decision_engine import DecisionEngine


class TestFixedWindowDecisions:
    def test_quota_then_deny_then_new_window(self, engine, store, clock, outcomes) -> None:
        store.hset("rate_config:u1:/x", {"maxRequests": "3", "windowInSec": "10", "strategy": "FIXED"})

        assert [engine.decide("u1:/x") for _ in range(3)] == [True, True, True]
        assert engine.decide("u1:/x") is False

        clock.return_value = 1010.5
        assert engine.decide("u1:/x") is True
        assert outcomes() == (4.0, 1.0)

    def test_defaults_apply_without_config(self, engine) -> None:
        results = [engine.decide("u2:/y") for _ in range(6)]

        assert results == [True] * 5 + [False]

    def test_strategy_name_is_case_insensitive(self, engine, store) -> None:
        store.hset("rate_config:k", {"maxRequests": "1", "strategy": "fixed"})

        engine.decide("k")
        engine.decide("k")

        # The shared counter was used, not the local bucket.
        assert store.incr("rl:k") == 3


class TestFallbackDecisions:
    def test_unknown_strategy_uses_local_bucket(self, engine, store, local_bucket) -> None:
        store.hset("rate_config:k", {"maxRequests": "2", "strategy": "UNKNOWN"})

        assert [engine.decide("k") for _ in range(3)] == [True, True, False]
        assert local_bucket.snapshot("k").remaining == 0

    def test_fallback_ignores_counter_state(self, engine, store) -> None:
        store.hset("rate_config:k", {"maxRequests": "2", "strategy": "UNKNOWN"})
        for _ in range(50):
            store.incr("rl:k")

        assert [engine.decide("k") for _ in range(3)] == [True, True, False]

    def test_fallback_window_resets(self, engine, store, clock) -> None:
        store.hset("rate_config:k", {"maxRequests": "1", "windowInSec": "10", "strategy": "LOCAL"})

        assert engine.decide("k") is True
        assert engine.decide("k") is False

        clock.return_value = 1011.0
        assert engine.decide("k") is True

    def test_concurrent_local_decisions(self, metrics, outcomes) -> None:
        store = Mock()
        store.hmget.return_value = ["10", "60", "LOCAL"]
        engine = DecisionEngine(
            config_resolver=ConfigResolver(store),
            selector=StrategySelector(fixed=Mock(spec=RateLimitStrategy), fallback=LocalFallbackBucket()),
            metrics=metrics,
        )
        start = threading.Barrier(100)

        def _decide(_: int) -> bool:
            start.wait()
            return engine.decide("same-key")

        with ThreadPoolExecutor(max_workers=100) as pool:
            results = list(pool.map(_decide, range(100)))

        assert results.count(True) == 10
        assert results.count(False) == 90
        assert outcomes() == (10.0, 90.0)


class TestFailOpen:
    def test_store_failure_mid_sequence_allows_without_counting(self, metrics, outcomes) -> None:
        store = Mock()
        store.hmget.return_value = ["2", "60", "FIXED"]
        store.incr.side_effect = [1, 2, StoreUnavailableError(code="store_unavailable", message="lost"), 3]
        engine = DecisionEngine(
            config_resolver=ConfigResolver(store),
            selector=StrategySelector(fixed=FixedWindowCounter(store), fallback=LocalFallbackBucket()),
            metrics=metrics,
        )

        assert engine.decide("k") is True
        assert engine.decide("k") is True
        assert outcomes() == (2.0, 0.0)

        assert engine.decide("k") is True
        assert outcomes() == (2.0, 0.0)

        assert engine.decide("k") is False
        assert outcomes() == (2.0, 1.0)

    @pytest.mark.parametrize(
        "error",
        [
            StoreTimeoutError(code="store_timeout", message="timed out"),
            ConnectionError("reset by peer"),
            RuntimeError("boom"),
        ],
    )
    def test_any_strategy_error_fails_open(self, metrics, outcomes, error: Exception) -> None:
        strategy = Mock(spec=RateLimitStrategy)
        strategy.allow.side_effect = error
        store = Mock()
        store.hmget.return_value = [None, None, None]
        engine = DecisionEngine(
            config_resolver=ConfigResolver(store),
            selector=StrategySelector(fixed=strategy, fallback=strategy),
            metrics=metrics,
        )

        assert engine.decide("k") is True
        assert outcomes() == (0.0, 0.0)

    @pytest.mark.parametrize("max_requests", ["1", "0"])
    def test_metrics_sink_failure_fails_open(self, store, max_requests: str) -> None:
        sink = Mock(spec=MetricsSink)
        sink.record_allowed.side_effect = RuntimeError("sink down")
        sink.record_blocked.side_effect = RuntimeError("sink down")
        store.hset("rate_config:k", {"maxRequests": max_requests, "windowInSec": "60", "strategy": "LOCAL"})
        engine = DecisionEngine(
            config_resolver=ConfigResolver(store),
            selector=StrategySelector(fixed=FixedWindowCounter(store), fallback=LocalFallbackBucket()),
            metrics=sink,
        )

        assert engine.decide("k") is True

    def test_resolver_failure_fails_open(self, metrics, outcomes) -> None:
        resolver = Mock(spec=ConfigResolver)
        resolver.get_config.side_effect = RuntimeError("unexpected")
        engine = DecisionEngine(
            config_resolver=resolver,
            selector=Mock(spec=StrategySelector),
            metrics=metrics,
        )

        assert engine.decide("k") is True
        assert outcomes() == (0.0, 0.0)

    def test_config_store_down_still_enforces_defaults_via_strategy(self, metrics, outcomes) -> None:
        store = Mock()
        store.hmget.side_effect = StoreUnavailableError(code="store_unavailable", message="down")
        store.incr.side_effect = [1, 2, 3, 4, 5, 6]
        engine = DecisionEngine(
            config_resolver=ConfigResolver(store),
            selector=StrategySelector(fixed=FixedWindowCounter(store), fallback=LocalFallbackBucket()),
            metrics=metrics,
        )

        results = [engine.decide("k") for _ in range(6)]

        assert results == [True] * 5 + [False]
        store.expire.assert_called_once_with("rl:k", 60)
        assert outcomes() == (5.0, 1.0)


def test_exactly_one_outcome_recorded_per_decision(engine, outcomes) -> None:
    for n in range(1, 9):
        engine.decide("k")
        allowed, blocked = outcomes()
        assert allowed + blocked == n
