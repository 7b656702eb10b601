"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import of rate_gate so the global
settings object is built for tests: in-process store, no .env file.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest
from prometheus_client import CollectorRegistry

from rate_gate.adapters.rate_limit.fixed_window import FixedWindowCounter
from rate_gate.adapters.rate_limit.local_bucket import LocalFallbackBucket
from rate_gate.adapters.rate_limit.selector import StrategySelector
from rate_gate.adapters.store.in_memory import InMemoryCountingStore
from rate_gate.core.metrics import PrometheusMetricsSink
from rate_gate.services.config_resolver import ConfigResolver
from rate_gate.services.decision_engine import DecisionEngine


@pytest.fixture
def clock() -> Mock:
    """Controllable time source shared by the store and the local bucket."""
    return Mock(return_value=1000.0)


@pytest.fixture
def store(clock: Mock) -> InMemoryCountingStore:
    return InMemoryCountingStore(clock=clock)


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> PrometheusMetricsSink:
    return PrometheusMetricsSink(registry=registry)


@pytest.fixture
def local_bucket(clock: Mock) -> LocalFallbackBucket:
    return LocalFallbackBucket(clock=clock)


@pytest.fixture
def engine(
    store: InMemoryCountingStore,
    local_bucket: LocalFallbackBucket,
    metrics: PrometheusMetricsSink,
) -> DecisionEngine:
    """Decision engine wired like production, on the in-process store."""
    return DecisionEngine(
        config_resolver=ConfigResolver(store),
        selector=StrategySelector(fixed=FixedWindowCounter(store), fallback=local_bucket),
        metrics=metrics,
    )


@pytest.fixture
def outcomes(registry: CollectorRegistry):
    """Return a callable reading the (allowed, blocked) counter values."""

    def _read() -> tuple[float, float]:
        allowed = registry.get_sample_value("rate_limit_allowed_total") or 0.0
        blocked = registry.get_sample_value("rate_limit_blocked_total") or 0.0
        return allowed, blocked

    return _read
