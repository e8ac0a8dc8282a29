"""
Example that prints keypad updates received from the network module.

Defaults to running until the connection closes - use ctrl-C to end.
"""

import asyncio

from evlkeypad import BaseEvent, Client, KeypadUpdate

host = "127.0.0.1"
port = 65432
password = "user"


def main(timeout: float = 0) -> None:
    """Register event handlers then await updates from the network module."""
    client = Client(host=host, port=port, password=password)

    @client.on_keypad_update
    def on_keypad_update(update: KeypadUpdate) -> None:
        row1, row2 = update.rows
        print(f"{row1} | {row2}  {' '.join(update.indicators)}")  # noqa: T201 # Valid CLI print

    @client.on_auth_failed
    def on_auth_failed() -> None:
        print("Incorrect password")  # noqa: T201 # Valid CLI print

    @client.on_event_received
    def on_event_received(event: BaseEvent) -> None:
        print(f"Event received: {event}")  # noqa: T201 # Valid CLI print

    async def _run() -> None:
        await client.connect()
        try:
            if timeout != 0:
                await asyncio.wait_for(client.wait_closed(), timeout)
            else:
                await client.wait_closed()
        except asyncio.TimeoutError:
            print("Timed out - shutting down")  # noqa: T201 # Valid CLI print
        await client.close()

    asyncio.run(_run())


if __name__ == "__main__":
    main()
