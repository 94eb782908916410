"""
Tests for body capture, body replay and the buffer pool.
"""

import io
import pytest
from typing import List

from reqlog.middleware.request_logger import RequestLoggingMiddleware
from reqlog.models.log_event import LogEventLevel
from reqlog.models.options import RequestLoggingOptions
from reqlog.services.body_capture import capture_body, read_text_in_chunks
from reqlog.services.buffer_pool import BufferPool


def make_receive(messages: List[dict]):
    """Build an ASGI receive callable that returns the given messages in order."""
    queue = list(messages)

    async def receive():
        return queue.pop(0)

    return receive


def http_scope(path: str = "/upload", method: str = "POST") -> dict:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "headers": [(b"content-type", b"text/plain")],
        "client": ("127.0.0.1", 5000),
    }


# ============================================================================
# read_text_in_chunks
# ============================================================================

def test_read_text_in_chunks_handles_split_multibyte():
    """Test that a multibyte character split across chunks decodes cleanly."""
    text = "héllo wörld " * 50
    stream = io.BytesIO(text.encode("utf-8"))

    assert read_text_in_chunks(stream, chunk_size=3) == text


def test_read_text_in_chunks_starts_from_beginning():
    """Test that the stream is rewound before reading."""
    stream = io.BytesIO(b"abcdef")
    stream.seek(4)

    assert read_text_in_chunks(stream) == "abcdef"


# ============================================================================
# capture_body
# ============================================================================

@pytest.mark.asyncio
async def test_capture_body_joins_chunks_and_replays():
    """Test that a multi-message body is captured and replayed as one message."""
    receive = make_receive([
        {"type": "http.request", "body": b"hello ", "more_body": True},
        {"type": "http.request", "body": b"world", "more_body": False},
    ])
    pool = BufferPool(max_pooled=2)

    captured = await capture_body(receive, buffer_pool=pool, chunk_size=4)

    assert captured.body == b"hello world"
    assert captured.text == "hello world"
    replay = captured.replay(receive)
    assert await replay() == {"type": "http.request", "body": b"hello world", "more_body": False}


@pytest.mark.asyncio
async def test_capture_body_keeps_disconnect_for_downstream():
    """Test that a disconnect seen during capture is replayed after the body."""
    receive = make_receive([
        {"type": "http.request", "body": b"part", "more_body": True},
        {"type": "http.disconnect"},
    ])

    captured = await capture_body(receive, buffer_pool=BufferPool())
    replay = captured.replay(receive)

    assert (await replay())["body"] == b"part"
    assert (await replay()) == {"type": "http.disconnect"}


@pytest.mark.asyncio
async def test_capture_body_delegates_after_replay():
    """Test that later receive calls reach the original callable."""
    receive = make_receive([
        {"type": "http.request", "body": b"", "more_body": False},
        {"type": "http.disconnect"},
    ])

    captured = await capture_body(receive, buffer_pool=BufferPool())
    replay = captured.replay(receive)
    await replay()

    assert await replay() == {"type": "http.disconnect"}


@pytest.mark.asyncio
async def test_capture_body_returns_buffer_to_pool():
    """Test that the pooled buffer is returned and reused."""
    pool = BufferPool(max_pooled=2)

    for _ in range(3):
        receive = make_receive([{"type": "http.request", "body": b"data", "more_body": False}])
        await capture_body(receive, buffer_pool=pool)

    assert pool.created_count == 1
    assert pool.idle_count == 1


@pytest.mark.asyncio
async def test_capture_body_returns_buffer_on_error():
    """Test that a failing receive still returns the buffer and propagates."""
    pool = BufferPool(max_pooled=2)

    async def receive():
        raise OSError("connection reset")

    with pytest.raises(OSError):
        await capture_body(receive, buffer_pool=pool)

    assert pool.idle_count == 1


# ============================================================================
# BufferPool
# ============================================================================

def test_buffer_pool_hands_out_empty_buffers():
    """Test that reused buffers come back empty."""
    pool = BufferPool(max_pooled=1)

    with pool.acquire() as buffer:
        buffer.write(b"left over")
    with pool.acquire() as buffer:
        assert buffer.getvalue() == b""


def test_buffer_pool_drops_oversized_buffers():
    """Test that buffers above the size limit are not kept."""
    pool = BufferPool(max_pooled=4, max_buffer_bytes=8)

    with pool.acquire() as buffer:
        buffer.write(b"x" * 16)

    assert pool.idle_count == 0


def test_buffer_pool_caps_idle_buffers():
    """Test that at most max_pooled buffers are kept idle."""
    pool = BufferPool(max_pooled=1)
    first, second = pool.rent(), pool.rent()

    pool.give_back(first)
    pool.give_back(second)

    assert pool.created_count == 2
    assert pool.idle_count == 1


# ============================================================================
# Middleware with raw ASGI messages
# ============================================================================

@pytest.mark.asyncio
async def test_middleware_replays_chunked_body(recording_sink):
    """Test that downstream receives the full chunked body from the start."""
    seen = []

    async def app(scope, receive, send):
        message = await receive()
        seen.append(message)
        await send({"type": "http.response.start", "status": 204, "headers": []})
        await send({"type": "http.response.body", "body": b""})

    async def send(message):
        pass

    middleware = RequestLoggingMiddleware(app, RequestLoggingOptions(logger=recording_sink))
    receive = make_receive([
        {"type": "http.request", "body": b"a" * 5000, "more_body": True},
        {"type": "http.request", "body": b"b" * 5000, "more_body": False},
    ])

    await middleware(http_scope(), receive, send)

    assert seen[0]["body"] == b"a" * 5000 + b"b" * 5000
    assert seen[0]["more_body"] is False
    event = recording_sink.events[0]
    assert event.properties["StatusCode"] == 204
    assert event.properties["body"] == "a" * 5000 + "b" * 5000


@pytest.mark.asyncio
async def test_middleware_logs_body_read_failure(recording_sink):
    """Test that a body I/O error is logged as a 500 and re-raised."""
    called = []

    async def app(scope, receive, send):
        called.append(True)

    async def receive():
        raise OSError("connection reset")

    async def send(message):
        pass

    middleware = RequestLoggingMiddleware(app, RequestLoggingOptions(logger=recording_sink))

    with pytest.raises(OSError, match="connection reset"):
        await middleware(http_scope(), receive, send)

    assert called == []
    event = recording_sink.events[0]
    assert event.level == LogEventLevel.ERROR
    assert event.properties["StatusCode"] == 500
    assert isinstance(event.exception, OSError)


@pytest.mark.asyncio
async def test_middleware_passes_through_non_http(recording_sink):
    """Test that lifespan and websocket scopes are not touched."""
    seen = []

    async def app(scope, receive, send):
        seen.append(scope["type"])

    middleware = RequestLoggingMiddleware(app, RequestLoggingOptions(logger=recording_sink))
    await middleware({"type": "lifespan"}, None, None)

    assert seen == ["lifespan"]
    assert recording_sink.events == []
