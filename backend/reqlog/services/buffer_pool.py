"""
Pooled byte buffers for request body capture.

Buffers are checked out for the duration of one capture and handed back
afterwards, so steady traffic reuses the same few BytesIO objects
instead of allocating a new one per request. Safe to share across
concurrently running requests.
"""

import io
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List

logger = logging.getLogger("reqlog.buffer_pool")

DEFAULT_MAX_POOLED = 32
DEFAULT_MAX_BUFFER_BYTES = 1024 * 1024


class BufferPool:
    """Thread-safe pool of reusable ``io.BytesIO`` buffers."""

    def __init__(self, max_pooled: int = DEFAULT_MAX_POOLED,
                 max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES):
        self.max_pooled = max_pooled
        self.max_buffer_bytes = max_buffer_bytes
        self._idle: List[io.BytesIO] = []
        self._lock = threading.Lock()
        self.created_count = 0

    @property
    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    def rent(self) -> io.BytesIO:
        """Take an empty buffer out of the pool, creating one if none is idle."""
        with self._lock:
            if self._idle:
                return self._idle.pop()
            self.created_count += 1
        return io.BytesIO()

    def give_back(self, buffer: io.BytesIO) -> None:
        """Reset a buffer and return it to the pool, or drop it if oversized."""
        size = buffer.seek(0, io.SEEK_END)
        buffer.seek(0)
        buffer.truncate()

        if size > self.max_buffer_bytes:
            logger.debug("Dropping %d byte buffer instead of pooling it", size)
            return

        with self._lock:
            if len(self._idle) < self.max_pooled:
                self._idle.append(buffer)

    @contextmanager
    def acquire(self) -> Iterator[io.BytesIO]:
        buffer = self.rent()
        try:
            yield buffer
        finally:
            self.give_back(buffer)


default_buffer_pool = BufferPool()
