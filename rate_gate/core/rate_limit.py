"""Rate limiting dependency for FastAPI routes.

This module wires the decision engine into the HTTP layer.

Design goals:
- Minimal coupling: routes depend on a dependency function only.
- One engine per process, built from settings on first use.
- Safe defaults: the engine fails open, so this layer only ever sees a boolean.

Key construction:
- ``<X-User-ID header>:<request path>``; ``anonymous`` when the header is absent.
- Limiters that keyed a missing header as ``null:<path>`` used a different
  counter and config key; migrate those entries to ``anonymous:<path>``.
"""

from __future__ import annotations

import logging
import threading
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from rate_gate.adapters.rate_limit.fixed_window import FixedWindowCounter
from rate_gate.adapters.rate_limit.local_bucket import LocalFallbackBucket
from rate_gate.adapters.rate_limit.selector import StrategySelector
from rate_gate.adapters.store.base import AbstractCountingStore
from rate_gate.adapters.store.in_memory import InMemoryCountingStore
from rate_gate.adapters.store.redis_store import RedisCountingStore
from rate_gate.core.config import Settings, settings
from rate_gate.core.metrics import MetricsSink, PrometheusMetricsSink
from rate_gate.services.config_resolver import ConfigResolver
from rate_gate.services.decision_engine import DecisionEngine

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"

_engine: DecisionEngine | None = None
_store: AbstractCountingStore | None = None
_metrics: MetricsSink | None = None
_engine_lock = threading.Lock()


def build_counting_store(cfg: Settings) -> AbstractCountingStore:
    """Create the counting store selected by ``STORE_BACKEND``.

    Returns:
        AbstractCountingStore: Redis store, or an in-process store for ``memory``.
    """

    if cfg.store.backend.lower() == "memory":
        logger.warning(
            "rate_limit.store_in_memory",
            extra={"reason": "store_backend_memory", "shared_across_instances": False},
        )
        return InMemoryCountingStore()

    return RedisCountingStore.from_url(
        cfg.store.redis_url,
        socket_timeout_seconds=cfg.store.socket_timeout_seconds,
        socket_connect_timeout_seconds=cfg.store.socket_connect_timeout_seconds,
    )


def build_decision_engine(
    cfg: Settings,
    *,
    store: AbstractCountingStore,
    metrics: MetricsSink,
) -> DecisionEngine:
    """Assemble resolver, strategies and selector into a DecisionEngine."""

    resolver = ConfigResolver(
        store,
        key_prefix=cfg.app.config_key_prefix,
        default_max_requests=cfg.app.default_max_requests,
        default_window_seconds=cfg.app.default_window_seconds,
        default_strategy=cfg.app.default_strategy,
    )
    selector = StrategySelector(
        fixed=FixedWindowCounter(
            store,
            key_prefix=cfg.app.counter_key_prefix,
            atomic_expiry=cfg.app.atomic_expiry,
        ),
        fallback=LocalFallbackBucket(),
    )
    return DecisionEngine(config_resolver=resolver, selector=selector, metrics=metrics)


def get_metrics_sink() -> MetricsSink:
    """Return the process-wide metrics sink, registering its counters once."""

    global _metrics

    with _engine_lock:
        if _metrics is None:
            _metrics = PrometheusMetricsSink()
        return _metrics


def get_counting_store() -> AbstractCountingStore:
    """Return the process-wide counting store (connections are pooled and lazy)."""

    global _store

    with _engine_lock:
        if _store is None:
            _store = build_counting_store(settings)
        return _store


def get_decision_engine() -> DecisionEngine:
    """Return the process-wide decision engine.

    The instance is cached in-module so local buckets persist across requests.

    Returns:
        DecisionEngine: Configured engine instance.
    """

    global _engine

    metrics = get_metrics_sink()
    store = get_counting_store()
    with _engine_lock:
        if _engine is None:
            _engine = build_decision_engine(settings, store=store, metrics=metrics)
            logger.info(
                "rate_limit.engine_ready",
                extra={
                    "store_backend": settings.store.backend,
                    "default_strategy": settings.app.default_strategy,
                    "atomic_expiry": settings.app.atomic_expiry,
                },
            )
        return _engine


def reset_decision_engine() -> None:
    """Drop the cached engine and store so the next request rebuilds them from settings.

    The dropped store is closed so its connection pool is released.
    """

    global _engine, _store

    with _engine_lock:
        old_store = _store
        _engine = None
        _store = None

    if old_store is not None:
        old_store.close()


def build_rate_limit_key(request: Request) -> str:
    """Build the limiter key for the current request.

    Args:
        request: FastAPI request.

    Returns:
        str: ``<user id>:<path>``.
    """

    user_id = request.headers.get(settings.app.user_id_header) or ANONYMOUS_USER
    return f"{user_id}:{request.url.path}"


def enforce_rate_limit(
    request: Request,
    engine: Annotated[DecisionEngine, Depends(get_decision_engine)],
) -> None:
    """FastAPI dependency enforcing per-key quotas.

    Declared sync so FastAPI runs it in the threadpool; store calls block.

    Args:
        request: FastAPI request.
        engine: Decision engine (overridable via ``app.dependency_overrides``).

    Raises:
        HTTPException: 429 Too Many Requests when the decision is DENY.
    """

    if not settings.app.rate_limit_enabled:
        return

    key = build_rate_limit_key(request)
    if engine.decide(key):
        return

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=settings.app.rejection_message,
    )
