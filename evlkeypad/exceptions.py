"""Exceptions raised by the evlkeypad library."""


class EvlKeypadError(Exception):
    """Base class for all evlkeypad errors."""


class PanelConnectionError(EvlKeypadError, ConnectionError):
    """The TCP connection to the network module could not be established."""


class UnsupportedOperationError(EvlKeypadError):
    """
    The requested operation is not valid for the transport's lifecycle state.

    Raised when connect() is called on a transport which has already been
    used. Reconnecting is never supported; create a new instance instead.
    """


class SendIOError(EvlKeypadError, OSError):
    """The socket failed unexpectedly while a command was being written."""


class ProtocolParseError(EvlKeypadError, ValueError):
    """A status line was recognised but could not be parsed."""
