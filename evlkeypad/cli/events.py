"""Provide the 'events' evlkeypad CLI command."""

import asyncio

import click

from evlkeypad.client import Client
from evlkeypad.event import BaseEvent, KeypadUpdate
from evlkeypad.exceptions import PanelConnectionError
from evlkeypad.transport import DEFAULT_HOST, DEFAULT_PORT


@click.command(help="Listen for keypad events until the connection closes")
@click.argument("host", default=DEFAULT_HOST)
@click.option("--port", type=int, default=DEFAULT_PORT)
@click.option("--password", default=None)
def events(host: str, port: int, password: str | None) -> None:
    """Add the 'events' CLI command which prints received events."""
    client = Client(host=host, port=port, password=password)

    @client.on_event_received
    def on_event_received(event: BaseEvent) -> None:
        print(event)  # noqa: T201 # Valid CLI print
        if isinstance(event, KeypadUpdate):
            print(f"  indicators: {' '.join(event.indicators)}")  # noqa: T201 # Valid CLI print

    async def _listen() -> None:
        try:
            await client.connect()
        except PanelConnectionError as e:
            raise click.ClickException(str(e)) from e
        await client.wait_closed()

    asyncio.run(_listen())
