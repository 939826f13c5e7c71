"""Server-Timing header and request duration logging."""

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Requests slower than this are logged at WARNING (AI calls routinely are)
SLOW_REQUEST_THRESHOLD_MS = 5000


class ServerTimingMiddleware(BaseHTTPMiddleware):
    """Add Server-Timing / X-Response-Time headers and log slow requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["Server-Timing"] = f"total;dur={process_time_ms:.1f};desc=\"Server Processing\""
        response.headers["X-Response-Time"] = f"{process_time_ms:.1f}ms"

        if process_time_ms >= SLOW_REQUEST_THRESHOLD_MS:
            logger.warning(
                "Slow request %s %s -> %d (%.0fms)",
                request.method, request.url.path, response.status_code, process_time_ms,
            )
        return response
