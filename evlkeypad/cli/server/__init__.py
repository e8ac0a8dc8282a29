"""Provide the 'server' evlkeypad CLI command - a network module emulator."""

import click

from evlkeypad.transport import DEFAULT_PORT

from .panel_server import PanelServer

__all__ = ["DEFAULT_PORT", "PanelServer", "server"]


@click.command(help="Run a network module emulator")
@click.option("--host", default="127.0.0.1")
@click.option("--port", type=int, default=DEFAULT_PORT)
@click.option("--password", default="user")
@click.option("--code", default="1234", help="4 digit user code")
def server(host: str, port: int, password: str, code: str) -> None:
    """Add the 'server' CLI command which runs the emulator until 'Q'."""
    s = PanelServer(host=host, port=port, password=password, code=code)
    s.start()
