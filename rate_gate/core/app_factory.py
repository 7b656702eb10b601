"""Application factory for the rate gate service.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from rate_gate.api.routes import demo_router, health_router, metrics_router
from rate_gate.core.config import settings
from rate_gate.core.exception_handlers import setup_exception_handlers
from rate_gate.core.logging import configure_logging
from rate_gate.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Rate Gate",
        description=(
            "Admission-control gate enforcing per-user, per-path request quotas "
            "shared across instances through Redis, with a process-local "
            "fallback strategy and fail-open behaviour when the store is down."
        ),
        version="0.1.0",
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(demo_router)

    return app
