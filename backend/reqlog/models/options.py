"""
Request logging options.

Built once at startup (directly, or from Settings) and treated as
read-only afterwards. The middleware copies what it needs into its own
immutable structures when it is constructed.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, List, Optional

from ..core.exceptions import ConfigurationError
from .log_event import LogEventLevel

if TYPE_CHECKING:
    from ..core.config import Settings
    from ..services.buffer_pool import BufferPool
    from ..services.diagnostic_context import DiagnosticContext
    from ..services.log_sink import LogSink
    from .http_context import HttpContext

DEFAULT_MESSAGE_TEMPLATE = "HTTP {RequestMethod} {RequestPath} responded {StatusCode} in {Elapsed:0.0000} ms"
DEFAULT_BODY_CHUNK_SIZE = 4096

GetLevel = Callable[["HttpContext", float, Optional[BaseException]], LogEventLevel]
EnrichDiagnosticContext = Callable[["DiagnosticContext", "HttpContext"], None]


def default_get_level(context: "HttpContext", elapsed_ms: float,
                      error: Optional[BaseException]) -> LogEventLevel:
    """Error when an exception escaped or the response is a 5xx, else Information."""
    if error is not None:
        return LogEventLevel.ERROR
    if context.status_code > 499:
        return LogEventLevel.ERROR
    return LogEventLevel.INFORMATION


@dataclass
class HeaderLoggingOptions:
    """Which request headers are attached to the completion event."""
    log_all: bool = False
    prefix: str = ""  # Prepended to each header name, e.g. "req_" -> "req_User-Agent"
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)


@dataclass
class RequestLoggingOptions:
    """Configuration for RequestLoggingMiddleware."""
    message_template: Optional[str] = DEFAULT_MESSAGE_TEMPLATE
    get_level: Optional[GetLevel] = default_get_level
    # Called right before the diagnostic context is completed
    enrich_diagnostic_context: Optional[EnrichDiagnosticContext] = None
    # Defaults to the "reqlog.middleware.request_logger" stdlib logger
    logger: Optional["LogSink"] = None
    ignored_paths: List[str] = field(default_factory=list)
    header_options: HeaderLoggingOptions = field(default_factory=HeaderLoggingOptions)
    body_chunk_size: int = DEFAULT_BODY_CHUNK_SIZE
    # Defaults to the process-wide pool
    buffer_pool: Optional["BufferPool"] = None

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RequestLoggingOptions":
        from ..services.buffer_pool import BufferPool

        return cls(
            message_template=settings.REQUEST_LOG_MESSAGE_TEMPLATE,
            ignored_paths=settings.ignored_paths,
            header_options=HeaderLoggingOptions(
                log_all=settings.REQUEST_LOG_HEADERS_LOG_ALL,
                prefix=settings.REQUEST_LOG_HEADERS_PREFIX,
                include=settings.header_include,
                exclude=settings.header_exclude,
            ),
            body_chunk_size=settings.REQUEST_LOG_BODY_CHUNK_SIZE,
            buffer_pool=BufferPool(
                max_pooled=settings.REQUEST_LOG_BUFFER_POOL_SIZE,
                max_buffer_bytes=settings.REQUEST_LOG_MAX_POOLED_BUFFER_BYTES,
            ),
        )

    def validate(self) -> None:
        """Reject options the middleware cannot run with."""
        if self.message_template is None:
            raise ConfigurationError("message_template cannot be None.")
        if self.get_level is None:
            raise ConfigurationError("get_level cannot be None.")
        if self.body_chunk_size <= 0:
            raise ConfigurationError("body_chunk_size must be positive.")
        if self.header_options is None:
            self.header_options = HeaderLoggingOptions()
