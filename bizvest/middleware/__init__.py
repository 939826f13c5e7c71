"""
Request middleware for the marketplace API.

- Correlation ID tracking for log tracing
- Server-Timing headers for performance debugging
"""

from .correlation import CorrelationIdMiddleware, CorrelationLogFilter, correlation_id_ctx, request_id_ctx
from .timing import ServerTimingMiddleware

__all__ = [
    "CorrelationIdMiddleware",
    "CorrelationLogFilter",
    "correlation_id_ctx",
    "request_id_ctx",
    "ServerTimingMiddleware",
]
