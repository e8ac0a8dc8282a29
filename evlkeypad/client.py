"""Provides the user API for driving a panel through its virtual keypad."""

import logging
from collections.abc import Callable

from .event import AuthenticationFailed, BaseEvent, KeypadUpdate
from .exceptions import ProtocolParseError
from .sender import SendResult
from .transport import DEFAULT_PORT, Transport

_LOGGER = logging.getLogger(__name__)

KEYPAD_KEYS = frozenset("0123456789#*")


class Client:
    """Main class that contains the user API for a virtual keypad session."""

    bad_received_lines: int
    last_update: KeypadUpdate | None
    _transport: Transport
    _password: str | None
    _on_event_received: list[Callable[[BaseEvent], None]]
    _on_keypad_update: list[Callable[[KeypadUpdate], None]]
    _on_auth_failed: list[Callable[[], None]]
    _on_connection_closed: list[Callable[[], None]]

    def __init__(  # noqa: PLR0913 # Cannot easily reduce argument count on public API
        self,
        *,
        transport: Transport | None = None,
        host: str | None = None,
        port: int = DEFAULT_PORT,
        password: str | None = None,
        send_delay: float = 0.0,
    ) -> None:
        """
        Create a client for a specific network module.

        :param transport: Use an existing (unconnected) transport instead of
            creating one from host + port
        :param password: Sent as the first line after connecting
        :param send_delay: Minimum seconds between keypresses
        """
        if transport is None:
            if host is None:
                msg = "Must provide host or transport object"
                raise ValueError(msg)
            transport = Transport(host, port, send_delay=send_delay)

        self._transport = transport
        self._password = password
        self._on_event_received = []
        self._on_keypad_update = []
        self._on_auth_failed = []
        self._on_connection_closed = []
        self.bad_received_lines = 0
        self.last_update = None
        transport.add_observer(self)

    @property
    def transport(self) -> Transport:
        """The transport used by this client."""
        return self._transport

    @property
    def connected(self) -> bool:
        """Whether the client is currently connected."""
        return self._transport.is_connected

    async def connect(self) -> None:
        """Connect to the network module and log in with the password."""
        await self._transport.connect()
        if self._password is not None:
            _LOGGER.debug("Sending password")
            await self._transport.send(self._password)

    async def send_keypress(self, key: str) -> SendResult:
        """
        Press a single key on the virtual keypad.

        :param key: One of 0-9, '#' or '*'
        """
        if len(key) != 1 or key not in KEYPAD_KEYS:
            msg = f"Not a keypad key: {key!r}"
            raise ValueError(msg)
        return await self._transport.send(key)

    async def send_command(self, command: str) -> SendResult:
        """Send a raw command line to the network module."""
        return await self._transport.send(command)

    async def close(self) -> None:
        """Disconnect from the network module."""
        _LOGGER.debug("Closing Client")
        await self._transport.disconnect()

    async def wait_closed(self) -> None:
        """Wait until the connection has closed."""
        await self._transport.wait_closed()

    def message_received(self, line: str) -> None:
        """Decode a line from the transport and dispatch it to handlers."""
        try:
            event = BaseEvent.decode(line)
        except ProtocolParseError:
            self.bad_received_lines += 1
            _LOGGER.warning("Failed to decode line: %r", line, exc_info=True)
            return

        if event is None:
            _LOGGER.debug("Ignoring line: %r", line)
            return

        _LOGGER.debug("Decoded event: %s", event)
        if isinstance(event, KeypadUpdate):
            self.last_update = event
            for keypad_handler in self._on_keypad_update:
                keypad_handler(event)
        elif isinstance(event, AuthenticationFailed):
            _LOGGER.warning("Password rejected by the network module")
            for auth_handler in self._on_auth_failed:
                auth_handler()

        for handler in self._on_event_received:
            handler(event)

    def connection_closed(self) -> None:
        """Forward the transport's close notification to handlers."""
        _LOGGER.info("Connection closed")
        for handler in self._on_connection_closed:
            handler()

    def on_event_received(
        self, f: Callable[[BaseEvent], None]
    ) -> Callable[[BaseEvent], None]:
        """
        Provide a decorator @client.on_event_received for all decoded events.

        Can also be called directly to add the handler
        """
        self._on_event_received.append(f)
        return f

    def on_keypad_update(
        self, f: Callable[[KeypadUpdate], None]
    ) -> Callable[[KeypadUpdate], None]:
        """
        Provide a decorator @client.on_keypad_update for display/icon updates.

        Can also be called directly to add the handler
        """
        self._on_keypad_update.append(f)
        return f

    def on_auth_failed(self, f: Callable[[], None]) -> Callable[[], None]:
        """
        Provide a decorator @client.on_auth_failed for a rejected password.

        Can also be called directly to add the handler
        """
        self._on_auth_failed.append(f)
        return f

    def on_connection_closed(self, f: Callable[[], None]) -> Callable[[], None]:
        """
        Provide a decorator @client.on_connection_closed for the end of a session.

        Can also be called directly to add the handler
        """
        self._on_connection_closed.append(f)
        return f
