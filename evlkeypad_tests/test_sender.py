"""Test the rate limited sender with an in-memory writer."""

import asyncio
from typing import cast

import pytest

from evlkeypad.exceptions import SendIOError
from evlkeypad.sender import RateLimitedSender, SendResult


class FakeWriter:
    """Records writes with the event loop time they happened at."""

    def __init__(self) -> None:
        self.writes: list[tuple[float, bytes]] = []
        self.closing = False
        self.error: OSError | None = None
        self.close_on_error = False

    def write(self, data: bytes) -> None:
        if self.error is not None:
            if self.close_on_error:
                self.closing = True
            raise self.error
        self.writes.append((asyncio.get_running_loop().time(), data))

    async def drain(self) -> None:
        await asyncio.sleep(0)

    def is_closing(self) -> bool:
        return self.closing


def make_sender(
    delay: float = 0.0,
) -> tuple[RateLimitedSender, FakeWriter, asyncio.Event]:
    writer = FakeWriter()
    shutdown = asyncio.Event()
    sender = RateLimitedSender(
        cast("asyncio.StreamWriter", writer), shutdown, delay=delay
    )
    return sender, writer, shutdown


@pytest.mark.asyncio
async def test_send_appends_crlf() -> None:
    """Test that a line is written as ASCII with a CRLF terminator."""
    sender, writer, _ = make_sender()
    assert await sender.send("1234") == SendResult.SENT
    assert [data for _, data in writer.writes] == [b"1234\r\n"]


@pytest.mark.asyncio
async def test_sends_are_serialised_in_call_order() -> None:
    """Test that concurrent sends are written in the order they were made."""
    sender, writer, _ = make_sender(delay=0.01)
    keys = ["1", "2", "3", "4", "#", "*"]
    results = await asyncio.gather(*(sender.send(k) for k in keys))
    assert results == [SendResult.SENT] * len(keys)
    assert [data for _, data in writer.writes] == [
        f"{k}\r\n".encode() for k in keys
    ]


@pytest.mark.asyncio
async def test_minimum_delay_between_sends() -> None:
    """Test that N sends with delay D span at least (N-1) x D."""
    delay = 0.05
    count = 4
    sender, writer, _ = make_sender(delay=delay)
    await asyncio.gather(*(sender.send(str(i)) for i in range(count)))

    times = [t for t, _ in writer.writes]
    assert len(times) == count
    assert times[-1] - times[0] >= (count - 1) * delay - 0.005
    for earlier, later in zip(times, times[1:]):
        assert later - earlier >= delay - 0.005


@pytest.mark.asyncio
async def test_zero_delay_does_not_wait() -> None:
    """Test that a zero delay lets sends through back to back."""
    sender, writer, _ = make_sender()
    loop = asyncio.get_running_loop()
    start = loop.time()
    for i in range(10):
        await sender.send(str(i))
    assert loop.time() - start < 0.5
    assert len(writer.writes) == 10


@pytest.mark.asyncio
async def test_shutdown_cancels_waiting_sends() -> None:
    """Test that shutdown releases queued sends promptly as CANCELLED."""
    sender, writer, shutdown = make_sender(delay=5.0)
    loop = asyncio.get_running_loop()
    start = loop.time()

    first = asyncio.ensure_future(sender.send("1"))
    await asyncio.sleep(0.05)
    waiting = [asyncio.ensure_future(sender.send(k)) for k in "234"]
    await asyncio.sleep(0.05)
    shutdown.set()

    results = await asyncio.wait_for(asyncio.gather(first, *waiting), 1.0)
    assert results[0] == SendResult.SENT
    assert results[1:] == [SendResult.CANCELLED] * 3
    assert [data for _, data in writer.writes] == [b"1\r\n"]
    assert loop.time() - start < 1.0


@pytest.mark.asyncio
async def test_send_after_shutdown_is_cancelled() -> None:
    """Test that nothing is written once shutdown has been signalled."""
    sender, writer, shutdown = make_sender()
    shutdown.set()
    assert await sender.send("1") == SendResult.CANCELLED
    assert writer.writes == []


@pytest.mark.asyncio
async def test_send_to_closed_writer() -> None:
    """Test that writing to a closed stream reports RESOURCE_CLOSED."""
    sender, writer, _ = make_sender()
    writer.closing = True
    assert await sender.send("1") == SendResult.RESOURCE_CLOSED
    assert writer.writes == []


@pytest.mark.asyncio
async def test_writer_closed_during_write() -> None:
    """Test that a write failing because the stream closed is expected."""
    sender, writer, _ = make_sender()
    writer.error = ConnectionResetError("closed")
    writer.close_on_error = True
    assert await sender.send("1") == SendResult.RESOURCE_CLOSED


@pytest.mark.asyncio
async def test_unexpected_write_failure_raises() -> None:
    """Test that an I/O failure mid-session is raised to the caller."""
    sender, writer, _ = make_sender()
    writer.error = BrokenPipeError("broken")
    with pytest.raises(SendIOError, match="broken"):
        await sender.send("1")


@pytest.mark.asyncio
async def test_gate_released_after_failure() -> None:
    """Test that a failed send does not block later sends."""
    sender, writer, _ = make_sender()
    writer.error = BrokenPipeError("broken")
    with pytest.raises(SendIOError):
        await sender.send("1")
    writer.error = None
    assert await asyncio.wait_for(sender.send("2"), 1.0) == SendResult.SENT


def test_negative_delay() -> None:
    """Test that a negative delay is rejected."""
    with pytest.raises(ValueError, match="must not be negative"):
        RateLimitedSender(
            cast("asyncio.StreamWriter", FakeWriter()), asyncio.Event(), delay=-1
        )
