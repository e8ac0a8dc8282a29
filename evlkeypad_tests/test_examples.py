"""Test the examples and the evlkeypad CLI tool."""

import logging
import socket
import time

import click
from click.testing import CliRunner

from evlkeypad.cli.__main__ import cli
from evlkeypad.cli.keypad import format_update, indicator_colour
from evlkeypad.cli.server import PanelServer
from evlkeypad.cli.server.panel import Panel
from evlkeypad.event import KeypadUpdate
from evlkeypad.indicator import Severity
from examples import listening_for_updates, sending_keys

_LOGGER = logging.getLogger(__name__)

logging.basicConfig(
    format="%(asctime)s.%(msecs)03d %(threadName)-25s %(levelname)-8s %(message)s",
    level=logging.DEBUG,
    datefmt="%Y-%m-%d %H:%M:%S",
)

host = "127.0.0.1"
port = 65434


def unused_port() -> int:
    """Find a port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((host, 0))
        return s.getsockname()[1]


def wait_for_state(server: PanelServer, state: Panel.ArmingState) -> bool:
    """Poll the emulated panel for an arming state."""
    end = time.monotonic() + 2
    while time.monotonic() < end:
        if server.panel.state == state:
            return True
        time.sleep(0.02)
    return False


def test_listening_for_updates() -> None:
    """Test the listening_for_updates.py example operation."""
    server = PanelServer(
        host=listening_for_updates.host,
        port=listening_for_updates.port,
        password=listening_for_updates.password,
    )
    server.start(interactive=False)

    # Run the example for 1 second
    listening_for_updates.main(timeout=1)

    server.stop()


def test_sending_keys() -> None:
    """Test the sending_keys.py example operation."""
    server = PanelServer(
        host=sending_keys.host, port=sending_keys.port, password=sending_keys.password
    )
    server.start(interactive=False)

    sending_keys.main()
    assert wait_for_state(server, Panel.ArmingState.DISARMED)

    server.stop()


def test_version() -> None:
    """Test the version command and log-level argument."""
    runner = CliRunner()
    result = runner.invoke(cli, args=["--log-level", "debug", "version"])
    _LOGGER.info("version output: %s", result.output)


def test_send_command() -> None:
    """Test the send-command command arms the emulated panel."""
    server = PanelServer(host=host, port=port, password="user")
    server.start(interactive=False)

    runner = CliRunner()
    result = runner.invoke(
        cli,
        args=[
            "--log-level",
            "info",
            "send-command",
            "--host",
            host,
            "--port",
            str(port),
            "--password",
            "user",
            "--send-delay",
            "0.05",
            "1",
            "2",
            "3",
            "4",
            "2",
        ],
    )
    assert result.exit_code == 0, result.output
    assert wait_for_state(server, Panel.ArmingState.ARMED_AWAY)

    server.stop()


def test_send_command_connect_failure() -> None:
    """Test the send-command command reports a failed connection."""
    runner = CliRunner()
    result = runner.invoke(
        cli, args=["send-command", "--host", host, "--port", str(unused_port()), "1"]
    )
    assert result.exit_code != 0
    assert "Failed to connect" in result.output


def test_events_wrong_password() -> None:
    """Test the events command prints the rejected login then exits."""
    server = PanelServer(host=host, port=port, password="user")
    server.start(interactive=False)

    runner = CliRunner()
    result = runner.invoke(
        cli, args=["events", host, "--port", str(port), "--password", "wrong"]
    )
    assert result.exit_code == 0, result.output
    assert "AuthenticationFailed" in result.output

    server.stop()


def test_keypad() -> None:
    """Test the interactive keypad command forwards keystrokes."""
    server = PanelServer(host=host, port=port, password="user")
    server.start(interactive=False)

    runner = CliRunner()
    result = runner.invoke(
        cli,
        args=["keypad", "user", host, "--port", str(port)],
        input="12342xq",
    )
    assert result.exit_code == 0, result.output
    assert "Connected.  Enter a number, *, # or q to quit." in result.output
    assert "Connection closed" in result.output
    assert wait_for_state(server, Panel.ArmingState.ARMED_AWAY)

    server.stop()


def test_keypad_wrong_password() -> None:
    """Test the keypad command reports a rejected password and exits."""
    server = PanelServer(host=host, port=port, password="user")
    server.start(interactive=False)

    runner = CliRunner()
    result = runner.invoke(
        cli, args=["keypad", "wrong", host, "--port", str(port)], input="q"
    )
    assert result.exit_code == 0, result.output
    assert "Incorrect password" in result.output
    assert "Connected." not in result.output

    server.stop()


def test_keypad_unreachable() -> None:
    """Test the keypad command exits cleanly when the module is unreachable."""
    runner = CliRunner()
    result = runner.invoke(
        cli, args=["keypad", "user", host, "--port", str(unused_port())]
    )
    assert result.exit_code == 0, result.output
    assert "Waiting to connect..." in result.output
    assert "Connected." not in result.output


def test_server() -> None:
    """Test the interactive emulator server command."""
    runner = CliRunner()
    result = runner.invoke(
        cli,
        args=["--log-level", "info", "server", "--host", host, "--port", str(port)],
        input="A\nD\nS\nD\nT\nD\nF\nP\nX\nQ\n",
    )
    assert result.exit_code == 0, result.output
    assert "Commands:" in result.output


def test_format_update() -> None:
    """Test that keypad updates render with coloured indicator labels."""
    update = KeypadUpdate(
        icon_bitmask=0x1202,
        beep_count=0,
        display_text="****DISARMED****  Ready to Arm  ",
    )
    line = format_update(update, width=80)
    plain = click.unstyle(line)

    assert plain.startswith("****DISARMED**** |   Ready to Arm  ")
    assert plain.endswith(" ALARM AC TRBL READY\r")
    assert len(plain) == 80
    assert click.style("AC", fg="red") in line
    assert click.style("TRBL", fg="yellow") in line
    assert click.style("READY", fg="green") in line


def test_indicator_colour() -> None:
    """Test the colours used for indicator labels."""
    assert indicator_colour("ARMED", Severity.ALARM) == "red"
    assert indicator_colour("ALARM", Severity.NORMAL) == "yellow"
    assert indicator_colour("PRGRM", Severity.NORMAL) == "yellow"
    assert indicator_colour("CHIME", Severity.NORMAL) == "green"
