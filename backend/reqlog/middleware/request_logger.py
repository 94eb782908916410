"""
Request and response logging middleware.

Instead of several log lines per request, collects method, path, status
code, timing, request body, selected headers and any properties added to
the diagnostic context, and writes a single event when the request
completes. Exceptions from downstream are logged with status 500 and
then re-raised unchanged.

Implemented as pure ASGI middleware (not BaseHTTPMiddleware) so the
request body can be replayed to downstream handlers and streaming
responses pass through untouched.
"""

import asyncio
import logging
import time
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..models.http_context import HttpContext
from ..models.options import RequestLoggingOptions
from ..services.body_capture import BODY_PROPERTY_NAME, capture_body
from ..services.buffer_pool import default_buffer_pool
from ..services.completion_logger import CompletionLogger
from ..services.diagnostic_context import DiagnosticContext
from ..services.message_template import MessageTemplate

logger = logging.getLogger("reqlog.middleware.request_logger")

DIAGNOSTIC_CONTEXT_STATE_KEY = "diagnostic_context"


def get_elapsed_milliseconds(start: float, stop: float) -> float:
    return (stop - start) * 1000


class RequestLoggingMiddleware:
    """Writes one structured completion event per HTTP request."""

    def __init__(self, app: ASGIApp, options: Optional[RequestLoggingOptions] = None):
        options = options or RequestLoggingOptions()
        options.validate()

        self.app = app
        self.options = options
        self.message_template = MessageTemplate.parse(options.message_template)
        self.ignored_paths = frozenset(options.ignored_paths)
        self.buffer_pool = options.buffer_pool or default_buffer_pool
        self.completion_logger = CompletionLogger(options, self.message_template)

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()

        diagnostic_context = DiagnosticContext()
        collector = diagnostic_context.begin_collection()
        scope.setdefault("state", {})[DIAGNOSTIC_CONTEXT_STATE_KEY] = diagnostic_context

        try:
            context = HttpContext.from_scope(scope, diagnostic_context)

            if context.request_path in self.ignored_paths:
                logger.debug("Skipping request logging for ignored path %s", context.request_path)
                await self.app(scope, receive, send)
                return

            async def send_wrapper(message: Message):
                if message["type"] == "http.response.start":
                    context.status_code = message.get("status", 200)
                await send(message)

            try:
                captured = await capture_body(
                    receive,
                    buffer_pool=self.buffer_pool,
                    chunk_size=self.options.body_chunk_size,
                )
                diagnostic_context.set(BODY_PROPERTY_NAME, captured.text)

                await self.app(scope, captured.replay(receive), send_wrapper)
            except (Exception, asyncio.CancelledError) as exc:
                elapsed_ms = get_elapsed_milliseconds(start, time.perf_counter())
                context.status_code = 500
                self._log_completion(context, collector, 500, elapsed_ms, exc)
                raise

            elapsed_ms = get_elapsed_milliseconds(start, time.perf_counter())
            self._log_completion(context, collector, context.status_code, elapsed_ms, None)
        finally:
            collector.dispose()

    def _log_completion(self, context, collector, status_code, elapsed_ms, error) -> None:
        # A failing callback or sink must never replace the request's own outcome
        try:
            self.completion_logger.log_completion(context, collector, status_code, elapsed_ms, error)
        except Exception:
            logger.exception("Request completion logging failed for %s %s",
                             context.method, context.request_path)
