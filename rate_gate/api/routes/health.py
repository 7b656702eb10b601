from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from rate_gate.adapters.store.base import AbstractCountingStore
from rate_gate.core.rate_limit import get_counting_store

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check; never touches the counting store."""

    return {"status": "ok"}


@router.get("/health/ready")
def readiness_check(
    store: Annotated[AbstractCountingStore, Depends(get_counting_store)],
) -> dict:
    """Readiness check against the counting store.

    An unreachable store surfaces as StoreUnavailableError, which the global
    handler turns into 503. Rate limiting keeps working (fail-open) either way.

    Returns:
        dict: ``{"status": "ok", "store": "ok"}`` when the store answers.
    """

    store.ping()
    return {"status": "ok", "store": "ok"}
