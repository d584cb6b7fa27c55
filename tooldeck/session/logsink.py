"""Best-effort asynchronous log channel.

Producers call ``send`` from any thread without ever blocking. A single
consumer drains the queue with ``drain``. Messages are dropped when the
queue is full or the sink is closed.
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

_log = logging.getLogger(__name__)

_CLOSE = object()


class LogSink:
    """Bounded message channel bound to the event loop that created it."""

    def __init__(self, maxsize: int = 256):
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=maxsize)
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread_id: Optional[int] = None
        self._closed = False
        self.dropped = 0

    def bind(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> "LogSink":
        """Attach to ``loop`` (default: the running loop)."""
        self._loop = loop or asyncio.get_running_loop()
        self._thread_id = threading.get_ident()
        return self

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: str) -> bool:
        """Queue ``message``. Returns False if it was dropped."""
        if self._closed or self._loop is None or self._loop.is_closed():
            self.dropped += 1
            return False
        if threading.get_ident() == self._thread_id:
            return self._put(message)
        try:
            self._loop.call_soon_threadsafe(self._put, message)
        except RuntimeError:
            self.dropped += 1
            return False
        return True

    def _put(self, message: object) -> bool:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            _log.debug("Log sink full, dropped message")
            return False
        return True

    def close(self) -> None:
        """Stop accepting messages and wake the consumer."""
        if self._closed:
            return
        self._closed = True
        if self._loop is None or self._loop.is_closed():
            return
        if threading.get_ident() == self._thread_id:
            self._force_close()
        else:
            self._loop.call_soon_threadsafe(self._force_close)

    def _force_close(self) -> None:
        try:
            self._queue.put_nowait(_CLOSE)
        except asyncio.QueueFull:
            # Make room for the sentinel; the consumer only needs to stop.
            self._queue.get_nowait()
            self.dropped += 1
            self._queue.put_nowait(_CLOSE)

    async def drain(self, write: Callable[[str], None] = print) -> None:
        """Consume messages until the sink is closed."""
        while True:
            message = await self._queue.get()
            if message is _CLOSE:
                return
            write(str(message))
