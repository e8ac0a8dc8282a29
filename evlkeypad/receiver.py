"""Long-running loop reading lines from the network module."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


class LineReceiver:
    """
    Reads lines for the life of a connection and hands each one on.

    The loop ends on shutdown, when the peer closes the socket, or on a read
    error. Whatever the reason, ``on_stop`` is awaited once the loop exits;
    it is the only way an unexpected remote close tears the connection down.
    """

    _reader: asyncio.StreamReader
    _shutdown: asyncio.Event
    _is_connected: Callable[[], bool]
    _on_line: Callable[[str], None]
    _on_stop: Callable[[], Awaitable[None]]
    lines_received: int

    def __init__(  # noqa: PLR0913 # Collaborators are injected individually
        self,
        reader: asyncio.StreamReader,
        shutdown: asyncio.Event,
        *,
        is_connected: Callable[[], bool],
        on_line: Callable[[str], None],
        on_stop: Callable[[], Awaitable[None]],
    ) -> None:
        """Create a receiver for the read side of a connection."""
        self._reader = reader
        self._shutdown = shutdown
        self._is_connected = is_connected
        self._on_line = on_line
        self._on_stop = on_stop
        self.lines_received = 0

    async def run(self) -> None:
        """Receive lines until the connection ends."""
        try:
            while True:
                if self._shutdown.is_set():
                    _LOGGER.info("Receive loop aborted: shutdown requested")
                    break
                if not self._is_connected():
                    _LOGGER.info("Receive loop aborted: not connected")
                    break

                try:
                    data = await self._reader.readline()
                except (ConnectionError, OSError):
                    _LOGGER.exception("Receive loop aborted: socket disconnected")
                    break
                except ValueError:
                    # readline() raises ValueError when the limit is overrun
                    _LOGGER.exception("Receive loop aborted: line too long")
                    break

                if not data:
                    _LOGGER.info("Receive loop aborted: end of stream")
                    break

                self._handle_data(data)
        finally:
            _LOGGER.debug("Receive loop completed - disconnecting")
            await self._on_stop()

    def _handle_data(self, data: bytes) -> None:
        # The module sometimes sends doubled line endings, which show up here
        # as empty lines. They are passed on like any other line.
        try:
            line = data.rstrip(b"\r\n").decode("ascii")
        except UnicodeDecodeError:
            _LOGGER.warning("Failed to decode data : %s", data, exc_info=True)
            return

        self.lines_received += 1
        _LOGGER.debug("Received line: %r [%d]", line, len(line))
        self._on_line(line)
