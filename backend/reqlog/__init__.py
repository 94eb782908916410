"""reqlog — single structured log event per HTTP request."""

from .api.deps import get_diagnostic_context
from .core.exceptions import ConfigurationError
from .extensions import use_request_logging
from .middleware.request_logger import RequestLoggingMiddleware
from .models.http_context import HttpContext
from .models.log_event import LogEvent, LogEventLevel
from .models.options import HeaderLoggingOptions, RequestLoggingOptions, default_get_level
from .services.diagnostic_context import DiagnosticContext, DiagnosticContextCollector
from .services.log_sink import LogSink, StdlibLogSink, get_logger

__all__ = [
    "ConfigurationError",
    "DiagnosticContext",
    "DiagnosticContextCollector",
    "HeaderLoggingOptions",
    "HttpContext",
    "LogEvent",
    "LogEventLevel",
    "LogSink",
    "RequestLoggingMiddleware",
    "RequestLoggingOptions",
    "StdlibLogSink",
    "default_get_level",
    "get_diagnostic_context",
    "get_logger",
    "use_request_logging",
]
