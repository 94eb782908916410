"""
Shared pytest fixtures for reqlog test suite.
"""

import asyncio
import pytest
from typing import AsyncGenerator, Callable, List

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import Response
from httpx import AsyncClient, ASGITransport

from reqlog.api.deps import get_diagnostic_context
from reqlog.extensions import use_request_logging
from reqlog.models.log_event import LogEvent, LogEventLevel
from reqlog.models.options import RequestLoggingOptions
from reqlog.services.buffer_pool import BufferPool
from reqlog.services.diagnostic_context import DiagnosticContext
from reqlog.services.log_sink import LogSink


class RecordingSink(LogSink):
    """Log sink test double that keeps every event in memory."""

    def __init__(self, minimum_level: LogEventLevel = LogEventLevel.VERBOSE):
        self.minimum_level = minimum_level
        self.events: List[LogEvent] = []

    def is_enabled(self, level: LogEventLevel) -> bool:
        return level >= self.minimum_level

    def write(self, event: LogEvent) -> None:
        self.events.append(event)


def build_test_app() -> FastAPI:
    """A small FastAPI app exercising the paths the middleware cares about."""
    app = FastAPI()

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    @app.post("/echo")
    async def echo(request: Request):
        body = await request.body()
        return Response(content=body, media_type="application/octet-stream")

    @app.get("/fail")
    async def fail():
        raise RuntimeError("boom")

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(0.05)
        return {"slept": True}

    @app.get("/status/{code}")
    async def status(code: int):
        raise HTTPException(status_code=code, detail="requested status")

    @app.get("/enrich")
    async def enrich(ctx: DiagnosticContext = Depends(get_diagnostic_context)):
        ctx.set("UserId", 42)
        ctx.set("StatusCode", 999)
        return {"ok": True}

    return app


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Provide a sink that records completion events."""
    return RecordingSink()


@pytest.fixture
def make_options(recording_sink: RecordingSink) -> Callable[..., RequestLoggingOptions]:
    """Provide a factory for options bound to the recording sink."""
    def factory(**overrides) -> RequestLoggingOptions:
        overrides.setdefault("logger", recording_sink)
        overrides.setdefault("buffer_pool", BufferPool(max_pooled=4))
        return RequestLoggingOptions(**overrides)
    return factory


@pytest.fixture
def make_client(make_options) -> Callable[..., AsyncClient]:
    """Provide a factory for clients talking to a logged test app."""
    def factory(**overrides) -> AsyncClient:
        app = build_test_app()
        use_request_logging(app, options=make_options(**overrides))
        transport = ASGITransport(app=app)
        return AsyncClient(transport=transport, base_url="http://test")
    return factory


@pytest.fixture
async def test_client(make_client) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for a test app with default options."""
    async with make_client() as client:
        yield client


@pytest.fixture
def make_sink() -> Callable[..., RecordingSink]:
    """Provide a factory for recording sinks with a minimum level."""
    return RecordingSink
