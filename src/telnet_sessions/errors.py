"""Exceptions raised by telnet session operations."""


class TelnetSessionError(Exception):
    """Base class for every failure surfaced by the session layer."""


class ConnectError(TelnetSessionError, ConnectionError):
    """Raised when a telnet host refuses, is unreachable, or cannot be resolved."""


class ConnectTimeoutError(ConnectError, TimeoutError):
    """Raised when the TCP handshake does not finish within the timeout."""


class SessionNotFoundError(TelnetSessionError, KeyError):
    """Raised when a session identifier is not registered."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Session not found: {self.session_id}"


class NotConnectedError(TelnetSessionError):
    """Raised when an operation needs an active connection and there is none."""


class SessionStateError(TelnetSessionError):
    """Raised when a session is asked to connect twice."""


class WriteError(TelnetSessionError):
    """Raised when writing to the transport fails."""


class InvalidEncodingError(TelnetSessionError, ValueError):
    """Raised when a read asks for an encoding that is not supported."""

    def __init__(self, encoding: str) -> None:
        super().__init__(f"Invalid encoding: {encoding}")
        self.encoding = encoding


class UnsupportedCommandError(TelnetSessionError, ValueError):
    """Raised when asked to answer a telnet command outside DO/DONT/WILL/WONT."""

    def __init__(self, command: int) -> None:
        super().__init__(f"No negotiation policy for telnet command {command}")
        self.command = command


__all__ = [
    "TelnetSessionError",
    "ConnectError",
    "ConnectTimeoutError",
    "SessionNotFoundError",
    "NotConnectedError",
    "SessionStateError",
    "WriteError",
    "InvalidEncodingError",
    "UnsupportedCommandError",
]
