"""
Observability module: structured logging, request IDs, request logging.

Usage:
    from erplib.observability import configure_logging, CorrelationIdMiddleware

    configure_logging("INFO", json_format=True)
    app.add_middleware(CorrelationIdMiddleware)

Log lines emitted while a request is in flight carry its request ID.
"""

from .logging import HumanFormatter, JSONFormatter, configure_logging, request_id_var
from .middleware import CorrelationIdMiddleware, RequestLoggingMiddleware, accept_request_id, new_request_id

__all__ = [
    # Logging
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "request_id_var",
    # Request IDs
    "accept_request_id",
    "new_request_id",
    # Middleware
    "CorrelationIdMiddleware",
    "RequestLoggingMiddleware",
]
