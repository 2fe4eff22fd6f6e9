import asyncio
from typing import Callable, Optional

from connections import Connection
from logging_config import get_logger

logger = get_logger(__name__)

# (room_id, content, sender_id)
FlushCallback = Callable[[str, str, str], None]


class EditCoalescer:
    """Per-connection debounce of buffer edits.

    Every ``submit`` replaces the connection's pending content and restarts
    its timer, so a burst of edits produces a single flush carrying the last
    content once input has been quiet for ``delay`` seconds.
    """

    def __init__(self, delay: float, on_flush: FlushCallback, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.delay = delay
        self.on_flush = on_flush
        self._loop = loop

    def submit(self, connection: Connection, room_id: str, content: str) -> None:
        connection.pending_code = content
        if connection.timer is not None:
            connection.timer.cancel()
        loop = self._loop or asyncio.get_running_loop()
        connection.timer = loop.call_later(self.delay, self._flush, connection, room_id)

    def cancel(self, connection: Connection) -> bool:
        """Drop the pending edit without flushing it. Returns True if one was pending."""
        had_pending = connection.timer is not None
        if connection.timer is not None:
            connection.timer.cancel()
        connection.timer = None
        connection.pending_code = None
        return had_pending

    def _flush(self, connection: Connection, room_id: str) -> None:
        content = connection.pending_code
        connection.pending_code = None
        connection.timer = None
        if content is None or connection.room_id != room_id:
            logger.debug(f"Discarding stale edit flush for connection {connection.id}")
            return
        try:
            self.on_flush(room_id, content, connection.id)
        except Exception as e:
            logger.error(f"Error flushing edit for connection {connection.id} in room {room_id}: {e}", exc_info=True)
