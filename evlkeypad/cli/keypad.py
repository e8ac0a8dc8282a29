"""Provide the 'keypad' evlkeypad CLI command - an interactive virtual keypad."""

import asyncio
import logging
import shutil
import threading
from collections.abc import Callable

import click

from evlkeypad.client import KEYPAD_KEYS, Client
from evlkeypad.event import KeypadUpdate
from evlkeypad.exceptions import EvlKeypadError
from evlkeypad.indicator import Severity, is_caution
from evlkeypad.transport import DEFAULT_HOST, DEFAULT_PORT

_LOGGER = logging.getLogger(__name__)

QUIT_KEY = "q"

# The module closes the connection shortly after rejecting a password
LOGIN_SETTLE_SECONDS = 0.25


def indicator_colour(label: str, severity: Severity) -> str:
    """Pick the terminal colour for an indicator label."""
    if severity == Severity.ALARM:
        return "red"
    if is_caution(label, severity):
        return "yellow"
    return "green"


def format_update(update: KeypadUpdate, width: int) -> str:
    """
    Render a keypad update as a single styled terminal line.

    The display rows are left aligned and the indicator labels right aligned
    within ``width`` columns. The line ends with a carriage return so the
    next update overwrites it.
    """
    labels = update.indicators
    row1, row2 = update.rows
    text = f"{row1} | {row2}"
    text_width = max(width - len(" ".join(labels)) - 2, len(text))

    line = click.style(text.ljust(text_width), fg="white")
    for label, severity in labels.items():
        line += " " + click.style(label, fg=indicator_colour(label, severity))
    return line + "\r"


def start_key_reader(
    loop: asyncio.AbstractEventLoop,
    keys: "asyncio.Queue[str]",
    getchar: Callable[[], str],
) -> threading.Thread:
    """
    Read keystrokes on a daemon thread and queue them on the event loop.

    End of input is reported as the quit key.
    """

    def _read_keys() -> None:
        while True:
            key = getchar() or QUIT_KEY
            try:
                loop.call_soon_threadsafe(keys.put_nowait, key)
            except RuntimeError:
                _LOGGER.debug("Event loop closed - key reader stopping")
                return
            if key == QUIT_KEY:
                return

    thread = threading.Thread(target=_read_keys, name="keypad input", daemon=True)
    thread.start()
    return thread


async def run_keypad(
    client: Client, getchar: Callable[[], str] = click.getchar
) -> None:
    """Run an interactive keypad session until quit or disconnection."""

    @client.on_keypad_update
    def on_keypad_update(update: KeypadUpdate) -> None:
        click.echo("\a" * update.beep_count, nl=False)
        width = shutil.get_terminal_size().columns
        click.echo(format_update(update, width), nl=False)

    @client.on_auth_failed
    def on_auth_failed() -> None:
        click.echo("\nIncorrect password", nl=False)

    @client.on_connection_closed
    def on_connection_closed() -> None:
        click.echo("\nConnection closed")

    click.echo("Waiting to connect...", nl=False)
    try:
        await client.connect()
        await asyncio.sleep(LOGIN_SETTLE_SECONDS)
    except EvlKeypadError as e:
        click.echo(f"\n{e}", err=True)

    if not client.connected:
        return
    click.echo("\rConnected.  Enter a number, *, # or q to quit.")

    keys: asyncio.Queue[str] = asyncio.Queue()
    start_key_reader(asyncio.get_running_loop(), keys, getchar)
    closed = asyncio.ensure_future(client.wait_closed())
    try:
        while True:
            next_key = asyncio.ensure_future(keys.get())
            await asyncio.wait({next_key, closed}, return_when=asyncio.FIRST_COMPLETED)
            if not next_key.done():
                next_key.cancel()
                return

            key = next_key.result()
            if key == QUIT_KEY:
                break
            if client.connected and key in KEYPAD_KEYS:
                click.echo("\a", nl=False)
                await client.send_keypress(key)
    finally:
        closed.cancel()

    await client.close()


@click.command(help="Interactive virtual keypad")
@click.argument("password")
@click.argument("host", default=DEFAULT_HOST)
@click.option("--port", type=int, default=DEFAULT_PORT)
@click.option("--send-delay", type=float, default=0.0)
def keypad(password: str, host: str, port: int, send_delay: float) -> None:
    """Add the 'keypad' CLI command which forwards keystrokes to the panel."""
    client = Client(host=host, port=port, password=password, send_delay=send_delay)
    asyncio.run(run_keypad(client))
