"""Example of using evlkeypad to press keys on the virtual keypad."""

import asyncio

from evlkeypad import Client

host = "127.0.0.1"
port = 65431
password = "user"


def main() -> None:
    """Arm away, disarm, then exit."""
    client = Client(host=host, port=port, password=password, send_delay=0.1)

    async def _run() -> None:
        await client.connect()
        # Arm away with user code 1234
        for key in "12342":
            await client.send_keypress(key)
        # Disarm
        for key in "12341":
            await client.send_keypress(key)
        # Send a raw command line
        await client.send_command("*")
        await client.close()

    asyncio.run(_run())


if __name__ == "__main__":
    main()
