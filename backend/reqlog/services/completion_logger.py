"""
Completion logger - assembles and writes the single request event

Property order matters because later properties win on name clashes:
    1. properties collected in the diagnostic context
    2. RequestMethod, RequestPath, StatusCode, Elapsed, RequestId
    3. filtered request headers
"""

from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional, Tuple

from ..models.http_context import HttpContext
from ..models.log_event import LogEvent
from ..models.options import RequestLoggingOptions
from .diagnostic_context import DiagnosticContextCollector
from .header_filter import get_filtered_headers
from .log_sink import LogSink, get_logger
from .message_template import MessageTemplate


class CompletionLogger:
    """Writes one structured event per completed request."""

    def __init__(self, options: RequestLoggingOptions,
                 message_template: Optional[MessageTemplate] = None):
        self.options = options
        self.message_template = message_template or MessageTemplate.parse(options.message_template)
        self._get_level = options.get_level
        self._enrich = options.enrich_diagnostic_context
        self._logger = options.logger

    def resolve_logger(self) -> LogSink:
        return self._logger or get_logger()

    def log_completion(
        self,
        context: HttpContext,
        collector: DiagnosticContextCollector,
        status_code: int,
        elapsed_ms: float,
        error: Optional[BaseException] = None,
    ) -> bool:
        """
        Write the completion event for ``context``.

        Always returns False ("not handled"): the caller re-raises ``error``
        after this returns, so outer error handlers still see it.
        """
        logger = self.resolve_logger()
        level = self._get_level(context, elapsed_ms, error)

        if not logger.is_enabled(level):
            return False

        if self._enrich is not None:
            self._enrich(context.diagnostic_context, context)

        completed, collected = collector.try_complete()
        if not completed:
            collected = {}

        properties: List[Tuple[str, Any]] = list(collected.items())
        properties.extend([
            ("RequestMethod", context.method),
            ("RequestPath", context.request_path),
            ("StatusCode", status_code),
            ("Elapsed", elapsed_ms),
            ("RequestId", context.trace_identifier),
        ])
        properties.extend(self.request_headers(context))

        event = LogEvent.create(
            timestamp=datetime.now(timezone.utc),
            level=level,
            exception=error,
            message_template=self.message_template,
            properties=properties,
        )
        logger.write(event)
        return False

    def request_headers(self, context: HttpContext) -> Iterator[Tuple[str, str]]:
        return get_filtered_headers(context.headers, self.options.header_options)
