"""
Line-oriented TCP transport for the network module's control port.

A :py:class:`Transport` is single-use: it connects once, and once
disconnected (for any reason) it cannot be connected again.
"""

import asyncio
import logging
from enum import Enum
from typing import Protocol

from .exceptions import PanelConnectionError, UnsupportedOperationError
from .receiver import LineReceiver
from .sender import RateLimitedSender, SendResult

_LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "envisalink"
DEFAULT_PORT = 4025


class ConnectionState(Enum):
    """Lifecycle states of a transport - each is entered at most once."""

    UNCONNECTED = "UNCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class TransportObserver(Protocol):
    """Receives the notifications raised by a :py:class:`Transport`."""

    def message_received(self, line: str) -> None:
        """Handle a received line (which may be empty)."""

    def connection_closed(self) -> None:
        """Handle the end of the connection - called once per transport."""


class Transport:
    """Owns the socket to the network module and the loops that use it."""

    DEFAULT_CONNECT_TIMEOUT = 10.0
    DEFAULT_LINE_LIMIT = 2**16

    host: str
    port: int
    _send_delay: float
    _connect_timeout: float
    _line_limit: int
    _state: ConnectionState
    _closed: bool
    _shutdown: asyncio.Event
    _closed_event: asyncio.Event
    _observers: list[TransportObserver]
    _writer: asyncio.StreamWriter | None
    _sender: RateLimitedSender | None
    _receiver: LineReceiver | None
    _receive_task: "asyncio.Task[None] | None"

    def __init__(  # noqa: PLR0913 # Configuration is passed explicitly
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        *,
        send_delay: float = 0.0,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        line_limit: int = DEFAULT_LINE_LIMIT,
    ) -> None:
        """
        Create a transport for a specific network module.

        :param host: Hostname or IP address of the network module
        :param port: TCP port of the control interface
        :param send_delay: Minimum seconds between sends, to avoid flooding
            the panel
        :param connect_timeout: Seconds to wait for the TCP connection
        :param line_limit: Maximum length of a received line in bytes
        """
        if send_delay < 0:
            msg = f"Send delay must not be negative: {send_delay}"
            raise ValueError(msg)
        self.host = host
        self.port = port
        self._send_delay = send_delay
        self._connect_timeout = connect_timeout
        self._line_limit = line_limit
        self._state = ConnectionState.UNCONNECTED
        self._closed = False
        self._shutdown = asyncio.Event()
        self._closed_event = asyncio.Event()
        self._observers = []
        self._writer = None
        self._sender = None
        self._receiver = None
        self._receive_task = None

    def __repr__(self) -> str:
        """Get a string representation of the transport."""
        return f"<Transport {self.host}:{self.port} {self._state.value}>"

    @property
    def state(self) -> ConnectionState:
        """The current lifecycle state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Whether the socket is currently connected to the network module."""
        return (
            self._state == ConnectionState.CONNECTED
            and self._writer is not None
            and not self._writer.is_closing()
        )

    def add_observer(self, observer: TransportObserver) -> None:
        """Register an observer for received lines and connection close."""
        self._observers.append(observer)

    def remove_observer(self, observer: TransportObserver) -> None:
        """Unregister a previously added observer."""
        self._observers.remove(observer)

    async def connect(self) -> None:
        """
        Connect and start receiving lines in the background.

        When this returns the transport is connected.

        :raises UnsupportedOperationError: This transport has been connected
            before. Create a new Transport instead.
        :raises PanelConnectionError: The connection could not be made. The
            transport is left unusable.
        """
        if self._state != ConnectionState.UNCONNECTED:
            msg = (
                "connect() aborted: reconnecting is not supported. "
                "Create a new Transport instead"
            )
            raise UnsupportedOperationError(msg)

        self._state = ConnectionState.CONNECTING
        _LOGGER.info("Connecting to %s:%s", self.host, self.port)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port, limit=self._line_limit),
                self._connect_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            _LOGGER.warning("Failed to connect to %s:%s: %r", self.host, self.port, e)
            self._mark_unusable()
            msg = f"Failed to connect to {self.host}:{self.port}: {e!r}"
            raise PanelConnectionError(msg) from e

        if self._shutdown.is_set():
            writer.close()
            msg = f"Disconnected while connecting to {self.host}:{self.port}"
            raise PanelConnectionError(msg)

        self._writer = writer
        self._sender = RateLimitedSender(writer, self._shutdown, self._send_delay)
        self._receiver = LineReceiver(
            reader,
            self._shutdown,
            is_connected=lambda: self.is_connected,
            on_line=self._dispatch_line,
            on_stop=self.disconnect,
        )
        self._state = ConnectionState.CONNECTED
        self._receive_task = asyncio.get_running_loop().create_task(
            self._receiver.run(), name=f"receive loop {self.host}:{self.port}"
        )
        _LOGGER.info("Connected to %s:%s", self.host, self.port)

    async def send(self, line: str) -> SendResult:
        """
        Send a line to the network module.

        The line is sent as-is followed by CRLF. Sends are serialised in call
        order and rate limited.

        :raises UnsupportedOperationError: connect() has not been called
        :raises SendIOError: The socket failed mid-session
        """
        if self._state in (ConnectionState.UNCONNECTED, ConnectionState.CONNECTING):
            msg = "send() aborted: not connected yet"
            raise UnsupportedOperationError(msg)
        if self._state == ConnectionState.DISCONNECTED or self._sender is None:
            _LOGGER.info("send(%r) failed: transport is disconnected", line)
            return SendResult.RESOURCE_CLOSED
        return await self._sender.send(line)

    async def disconnect(self) -> None:
        """
        Close the connection and stop the background receive loop.

        Safe to call any number of times, from any task - including the
        receive loop itself. Observers are told the connection closed once,
        after teardown completes. The transport cannot be reused afterwards.
        """
        if self._closed:
            _LOGGER.debug("disconnect() - already disconnected")
            return
        self._closed = True
        self._shutdown.set()
        self._state = ConnectionState.DISCONNECTED
        _LOGGER.info("Disconnecting from %s:%s", self.host, self.port)

        if self._writer is not None:
            # Closing the writer closes the socket, which ends any pending read
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except (ConnectionError, OSError) as e:
                _LOGGER.debug("Ignoring error whilst closing: %r", e)

        task = self._receive_task
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait({task})

        _LOGGER.info("Disconnected from %s:%s", self.host, self.port)
        self._notify_closed()

    async def wait_closed(self) -> None:
        """Wait until the transport has been disconnected and torn down."""
        await self._closed_event.wait()

    def _mark_unusable(self) -> None:
        """Finish a failed connect without raising a close notification."""
        self._closed = True
        self._shutdown.set()
        self._state = ConnectionState.DISCONNECTED
        self._closed_event.set()

    def _dispatch_line(self, line: str) -> None:
        for observer in list(self._observers):
            try:
                observer.message_received(line)
            except Exception:  # noqa: BLE001 # Observer errors are logged only
                _LOGGER.exception("Error whilst handling line %r", line)

    def _notify_closed(self) -> None:
        self._closed_event.set()
        for observer in list(self._observers):
            try:
                observer.connection_closed()
            except Exception:  # noqa: BLE001 # Observer errors are logged only
                _LOGGER.exception("Error whilst handling connection close")
