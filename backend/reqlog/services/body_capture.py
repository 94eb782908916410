"""
Request body capture for ASGI apps.

The whole body is drained from ``receive`` into a pooled buffer, decoded
as UTF-8 in fixed-size chunks, and then replayed to the downstream app
through a new ``receive`` callable. Downstream handlers read the exact
bytes the client sent, as if nothing had touched the stream.
"""

import codecs
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from starlette.types import Message, Receive

from .buffer_pool import BufferPool, default_buffer_pool

logger = logging.getLogger("reqlog.body_capture")

DEFAULT_CHUNK_SIZE = 4096
BODY_PROPERTY_NAME = "body"


def read_text_in_chunks(stream, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Read a binary stream from its start as UTF-8 text, chunk by chunk."""
    stream.seek(0)
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    parts: List[str] = []
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        parts.append(decoder.decode(chunk))
    parts.append(decoder.decode(b"", final=True))
    return "".join(parts)


class ReplayReceive:
    """A ``receive`` callable that replays a captured body from its start."""

    def __init__(self, body: bytes, pending: List[Message], receive: Receive):
        self.body = body
        self._pending = list(pending)
        self._receive = receive
        self._body_sent = False

    async def __call__(self) -> Message:
        if not self._body_sent:
            self._body_sent = True
            return {"type": "http.request", "body": self.body, "more_body": False}
        if self._pending:
            return self._pending.pop(0)
        return await self._receive()


@dataclass
class CapturedBody:
    """Result of draining a request body."""
    body: bytes
    text: str
    pending: List[Dict[str, Any]] = field(default_factory=list)

    def replay(self, receive: Receive) -> ReplayReceive:
        return ReplayReceive(self.body, self.pending, receive)


async def capture_body(
    receive: Receive,
    buffer_pool: Optional[BufferPool] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> CapturedBody:
    """
    Drain every ``http.request`` message and return the body as bytes and text.

    An ``http.disconnect`` received mid-body stops the drain; it is kept
    and handed to the downstream app after the replayed body.
    I/O errors raised by ``receive`` propagate to the caller.
    """
    pool = buffer_pool or default_buffer_pool
    pending: List[Message] = []

    with pool.acquire() as buffer:
        while True:
            message = await receive()
            if message["type"] != "http.request":
                pending.append(message)
                break
            buffer.write(message.get("body", b""))
            if not message.get("more_body", False):
                break

        body = buffer.getvalue()
        text = read_text_in_chunks(buffer, chunk_size)

    if pending:
        logger.debug("Client disconnected after %d body bytes", len(body))
    return CapturedBody(body=body, text=text, pending=pending)
