"""Provide the 'send_command' evlkeypad CLI command."""

import asyncio
import logging

import click

from evlkeypad.client import Client
from evlkeypad.exceptions import PanelConnectionError
from evlkeypad.transport import DEFAULT_HOST, DEFAULT_PORT

_LOGGER = logging.getLogger(__name__)


@click.command(help="Send commands, one line each")
@click.option("--host", default=DEFAULT_HOST)
@click.option("--port", type=int, default=DEFAULT_PORT)
@click.option("--password", default=None)
@click.option("--send-delay", type=float, default=0.5)
@click.argument("commands", nargs=-1, required=True)
def send_command(
    host: str,
    port: int,
    password: str | None,
    send_delay: float,
    commands: tuple[str, ...],
) -> None:
    """Add the 'send_command' CLI command which sends command lines."""
    _LOGGER.debug("send_command %s %s %s", host, port, commands)
    client = Client(host=host, port=port, password=password, send_delay=send_delay)

    async def _send() -> None:
        try:
            await client.connect()
        except PanelConnectionError as e:
            raise click.ClickException(str(e)) from e
        for command in commands:
            result = await client.send_command(command)
            _LOGGER.info("send_command %r: %s", command, result)
        await client.close()

    asyncio.run(_send())
