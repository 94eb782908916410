"""reqlog middleware — single-event request and response logging."""

from .request_logger import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
