"""HTTP middleware for request ID propagation and timing.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from rate_gate.core.config import settings
from rate_gate.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id and the handling duration to every response.

    Reuses the incoming ``X-Request-ID`` (header name configurable via
    ``LOG_REQUEST_ID_HEADER``) or generates a UUID, binds it to the logging
    context for the duration of the request, and echoes it back together with
    ``X-Request-Duration-ms``. Rate-limited (429) responses carry both headers
    too, so rejected calls can be correlated with ``rate_limit.blocked`` logs.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
