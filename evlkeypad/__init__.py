"""Module file for evlkeypad."""

from .client import Client
from .event import AuthenticationFailed, BaseEvent, KeypadUpdate, decode_line
from .exceptions import (
    EvlKeypadError,
    PanelConnectionError,
    ProtocolParseError,
    SendIOError,
    UnsupportedOperationError,
)
from .indicator import Indicator, Severity, resolve_indicators
from .sender import SendResult
from .transport import ConnectionState, Transport

__all__ = [
    "AuthenticationFailed",
    "BaseEvent",
    "Client",
    "ConnectionState",
    "EvlKeypadError",
    "Indicator",
    "KeypadUpdate",
    "PanelConnectionError",
    "ProtocolParseError",
    "SendIOError",
    "SendResult",
    "Severity",
    "Transport",
    "UnsupportedOperationError",
    "decode_line",
    "resolve_indicators",
]
__version__ = "0.0.0-dev"
