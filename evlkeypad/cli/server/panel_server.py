"""Implements a network module emulator with an interactive CLI UI."""

import logging

from evlkeypad.client import KEYPAD_KEYS
from evlkeypad.event import KeypadUpdate

from .panel import Panel
from .server import Server

_LOGGER = logging.getLogger(__name__)


class PanelServer:
    """Implements a network module emulator with an interactive CLI UI."""

    panel: Panel
    server: Server

    PORT_MIN = 0
    PORT_MAX = 65535

    def __init__(
        self, host: str, port: int, password: str = "user", code: str = "1234"
    ) -> None:
        """Create a new emulator that listens on a specific host+port."""
        if not isinstance(host, str):
            msg = "Host must be a valid string"
            raise TypeError(msg)
        if (
            not isinstance(port, int)
            or port < PanelServer.PORT_MIN
            or port > PanelServer.PORT_MAX
        ):
            msg = "Port must be a valid integer 0-65535"
            raise ValueError(msg)
        self.panel = Panel(status_changed=self._status_changed, code=code)
        self.server = Server(
            password=password,
            handle_command=self._handle_command,
            on_login=self._on_login,
        )
        self._host = host
        self._port = port

    def start(self, *, interactive: bool = True) -> None:
        """Start running the emulator."""
        self.server.start(host=self._host, port=self._port)

        if interactive:
            while True:
                command = input("Command: ")
                if not self.interactive_command(command):
                    _LOGGER.debug("Stopping interactive commands")
                    break

    def interactive_command(self, command: str) -> bool:
        """Handle a user CLI command."""
        print(f"Got command {command}")  # noqa: T201 # Valid CLI print

        command = command.upper().strip()
        if command == "D":
            self.panel.disarm()
        elif command == "A":
            self.panel.arm(Panel.ArmingState.ARMED_AWAY)
        elif command == "S":
            self.panel.arm(Panel.ArmingState.ARMED_STAY)
        elif command == "T":
            self.panel.trip()
        elif command == "F":
            self.panel.fire_alarm()
        elif command == "P":
            self.panel.set_ac_power(present=not self.panel.ac_power)
        elif command == "Q":
            self.stop()
            return False
        else:
            print("Commands:")  # noqa: T201 # Valid CLI print
            print("  D  : Disarm")  # noqa: T201 # Valid CLI print
            print("  A  : Armed Away")  # noqa: T201 # Valid CLI print
            print("  S  : Armed Stay")  # noqa: T201 # Valid CLI print
            print("  T  : Trip")  # noqa: T201 # Valid CLI print
            print("  F  : Fire")  # noqa: T201 # Valid CLI print
            print("  P  : Toggle AC power")  # noqa: T201 # Valid CLI print
            print("  Q  : Quit")  # noqa: T201 # Valid CLI print

        return True

    def stop(self) -> None:
        """Stop the emulator."""
        _LOGGER.debug("Stopping PanelServer")
        self.server.stop()

    def _status_changed(self, update: KeypadUpdate) -> None:
        """Send a keypad update line to every logged-in client."""
        self.server.write_to_all_clients(update.encode())

    def _on_login(self) -> None:
        """Send the current status when a client logs in."""
        self.server.write_to_all_clients(self.panel.status().encode())

    def _handle_command(self, command: str) -> None:
        """Press each keypad key in a line received from a client."""
        _LOGGER.info("Incoming User Command: %r", command)
        for key in command:
            if key in KEYPAD_KEYS:
                self.panel.press(key)
            else:
                _LOGGER.warning("Ignoring non-keypad character %r", key)
