"""Serialised, rate-limited writes of command lines to the network module."""

import asyncio
import logging
from enum import Enum

from .exceptions import SendIOError

_LOGGER = logging.getLogger(__name__)

LINE_TERMINATOR = "\r\n"


class SendResult(Enum):
    """Outcome of a send request."""

    SENT = "SENT"
    # Shutdown was signalled while waiting for a previous send to finish
    CANCELLED = "CANCELLED"
    # The stream was already closed when the write was attempted
    RESOURCE_CLOSED = "RESOURCE_CLOSED"


class RateLimitedSender:
    """
    Writes one line at a time, with a minimum delay between writes.

    The panel drops keystrokes that arrive too quickly, so each send holds
    the gate for ``delay`` seconds after writing. Waiters are served in call
    order.
    """

    _writer: asyncio.StreamWriter
    _delay: float
    _shutdown: asyncio.Event
    _gate: asyncio.Lock

    def __init__(
        self, writer: asyncio.StreamWriter, shutdown: asyncio.Event, delay: float = 0.0
    ) -> None:
        """
        Create a sender for a connected stream.

        :param writer: The write side of the connection - owned by this sender
        :param shutdown: Set once when the connection is torn down
        :param delay: Minimum seconds between consecutive writes
        """
        if delay < 0:
            msg = f"Send delay must not be negative: {delay}"
            raise ValueError(msg)
        self._writer = writer
        self._shutdown = shutdown
        self._delay = delay
        self._gate = asyncio.Lock()

    @property
    def delay(self) -> float:
        """Minimum seconds between consecutive writes."""
        return self._delay

    async def send(self, line: str) -> SendResult:
        """
        Write a line, waiting for any previous send's delay to elapse first.

        :raises SendIOError: The socket failed mid-session
        """
        async with self._gate:
            if self._shutdown.is_set():
                _LOGGER.info("send(%r) aborted: shutdown requested", line)
                return SendResult.CANCELLED
            if self._writer.is_closing():
                _LOGGER.info("send(%r) failed: writer already closed", line)
                return SendResult.RESOURCE_CLOSED

            _LOGGER.debug("Sending line: %r", line)
            try:
                self._writer.write((line + LINE_TERMINATOR).encode("ascii"))
                await self._writer.drain()
            except (ConnectionError, OSError) as e:
                if self._shutdown.is_set() or self._writer.is_closing():
                    _LOGGER.info("send(%r) failed: writer closed during write", line)
                    return SendResult.RESOURCE_CLOSED
                _LOGGER.error("send(%r) failed: socket disconnected unexpectedly", line)
                msg = f"Failed to send {line!r}: {e}"
                raise SendIOError(msg) from e

            await self._hold_gate()
            return SendResult.SENT

    async def _hold_gate(self) -> None:
        """Keep the gate closed for the send delay, or until shutdown."""
        if self._delay <= 0:
            return
        try:
            await asyncio.wait_for(self._shutdown.wait(), self._delay)
        except asyncio.TimeoutError:
            return
        _LOGGER.info("Send delay aborted: shutdown requested")
