"""
Decode lines received from the network module into events.

Lines of interest:
* ``FAILED`` - the password sent at login was rejected.
* ``%00,<partition>,<icon>,<zone>,<beep>,<text>$`` - Virtual Keypad Update.
    * partition: hex - the partition the keypad is attached to
    * icon:      hex - bitmask of lit keypad icons (see :py:class:`Indicator`)
    * zone:      hex - zone number (or user number) related to the update
    * beep:      hex - how many times the keypad should beep
    * text:      32 characters - two 16 character rows of display text

Every other line (login prompts, ``OK``, other ``%`` and ``^`` codes) is
outside the scope of the keypad and is ignored.
"""

import logging
from dataclasses import dataclass

from .exceptions import ProtocolParseError
from .indicator import IndicatorSet, resolve_indicators

_LOGGER = logging.getLogger(__name__)

AUTH_FAILED_LINE = "FAILED"
STATUS_LINE_START = "%"
STATUS_LINE_END = "$"
KEYPAD_UPDATE_CODE = "00"


class BaseEvent:
    """Represents a message from the network module."""

    def __repr__(self) -> str:
        """Get a string representation of the event."""
        return f"<{self.__class__.__name__} {self.__dict__}>"

    @classmethod
    def decode(cls, line: str) -> "BaseEvent | None":
        """
        Decode a line received from the network module.

        :param line: The received line with its terminator stripped
        :return: The decoded event, or None when the line is not one this
                 client handles
        :raises ProtocolParseError: The line looks like a keypad update but
                                    is malformed
        """
        if line == AUTH_FAILED_LINE:
            return AuthenticationFailed()
        if not (line.startswith(STATUS_LINE_START) and line.endswith(STATUS_LINE_END)):
            return None

        fields = line[len(STATUS_LINE_START) : -len(STATUS_LINE_END)].split(",")
        if fields[0] != KEYPAD_UPDATE_CODE:
            return None
        return KeypadUpdate.decode(fields)

    def encode(self) -> str:
        """
        Abstract method - do not call.

        Provides a prototype for subclasses which can be encoded into a line
        """
        raise NotImplementedError


class AuthenticationFailed(BaseEvent):
    """The password sent at connect time was rejected."""

    def __eq__(self, other: object) -> bool:
        """All authentication failures are equivalent."""
        return isinstance(other, AuthenticationFailed)

    def __hash__(self) -> int:
        """Hash consistently with __eq__."""
        return hash(AUTH_FAILED_LINE)

    def encode(self) -> str:
        """Encode as the literal line sent by the network module."""
        return AUTH_FAILED_LINE


@dataclass(frozen=True)
class KeypadUpdate(BaseEvent):
    """Virtual Keypad Update - the panel's display text and icons."""

    icon_bitmask: int
    beep_count: int
    display_text: str
    partition: int = 1
    zone: int = 0

    DISPLAY_ROW_LENGTH = 16
    DISPLAY_TEXT_LENGTH = 2 * DISPLAY_ROW_LENGTH
    FIELD_COUNT = 6

    def __post_init__(self) -> None:
        """Validate the display text length."""
        if len(self.display_text) != KeypadUpdate.DISPLAY_TEXT_LENGTH:
            msg = (
                f"Display text must be {KeypadUpdate.DISPLAY_TEXT_LENGTH} "
                f"characters, got {len(self.display_text)}: {self.display_text!r}"
            )
            raise ProtocolParseError(msg)

    @classmethod
    def decode(cls, fields: list[str]) -> "KeypadUpdate":  # type: ignore[override]
        """
        Decode the comma separated fields of a ``%00`` line.

        :param fields: All fields including the leading ``00`` code
        """
        if len(fields) != cls.FIELD_COUNT:
            msg = f"Expected {cls.FIELD_COUNT} fields, got {len(fields)}: {fields}"
            raise ProtocolParseError(msg)

        return KeypadUpdate(
            partition=_parse_hex(fields[1], "partition"),
            icon_bitmask=_parse_hex(fields[2], "icon"),
            zone=_parse_hex(fields[3], "zone"),
            beep_count=_parse_hex(fields[4], "beep"),
            display_text=fields[5],
        )

    def encode(self) -> str:
        """Encode as a status line, as sent by the network module."""
        return (
            f"{STATUS_LINE_START}{KEYPAD_UPDATE_CODE},{self.partition:02X},"
            f"{self.icon_bitmask:04X},{self.zone:02X},{self.beep_count:02X},"
            f"{self.display_text}{STATUS_LINE_END}"
        )

    @property
    def rows(self) -> tuple[str, str]:
        """The two rows of the keypad display."""
        return (
            self.display_text[: KeypadUpdate.DISPLAY_ROW_LENGTH],
            self.display_text[KeypadUpdate.DISPLAY_ROW_LENGTH :],
        )

    @property
    def indicators(self) -> IndicatorSet:
        """Labels for the icons lit by this update."""
        return resolve_indicators(self.icon_bitmask)


def _parse_hex(value: str, name: str) -> int:
    # int() accepts signs, whitespace and underscores - the protocol does not
    if not value or any(c not in "0123456789abcdefABCDEF" for c in value):
        msg = f"Field '{name}' is not a hex number: {value!r}"
        raise ProtocolParseError(msg)
    return int(value, 16)


def decode_line(line: str) -> BaseEvent | None:
    """
    Decode a line, logging and ignoring malformed keypad updates.

    :return: The decoded event, or None if the line should be ignored
    """
    try:
        return BaseEvent.decode(line)
    except ProtocolParseError:
        _LOGGER.warning("Failed to decode line: %r", line, exc_info=True)
        return None
