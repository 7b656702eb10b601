from __future__ import annotations

from rate_gate.api.routes.demo import router as demo_router
from rate_gate.api.routes.health import router as health_router
from rate_gate.api.routes.metrics import router as metrics_router

__all__ = ["demo_router", "health_router", "metrics_router"]
