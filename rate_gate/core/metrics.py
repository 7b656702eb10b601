"""Decision outcome metrics.

The decision engine reports each completed decision to a MetricsSink. The
Prometheus implementation exposes two monotonically increasing counters,
``rate_limit_allowed_total`` and ``rate_limit_blocked_total``, scraped from
the ``/metrics`` endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class MetricsSink(ABC):
    """Receives exactly one outcome per completed decision."""

    @abstractmethod
    def record_allowed(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def record_blocked(self) -> None:
        raise NotImplementedError


class PrometheusMetricsSink(MetricsSink):
    """MetricsSink backed by prometheus_client counters."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Register the outcome counters.

        Args:
            registry: Collector registry; tests pass a fresh one to avoid
                duplicate registration in the process-wide default registry.
        """
        self.allowed = Counter(
            "rate_limit_allowed",
            "Requests allowed by the rate limiter",
            registry=registry,
        )
        self.blocked = Counter(
            "rate_limit_blocked",
            "Requests rejected by the rate limiter",
            registry=registry,
        )

    def record_allowed(self) -> None:
        self.allowed.inc()

    def record_blocked(self) -> None:
        self.blocked.inc()
