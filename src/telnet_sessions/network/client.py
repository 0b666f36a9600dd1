"""Telnet client session: one TCP connection and its receive buffer."""

import asyncio
import base64
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Final
from uuid import uuid4

import structlog

from telnet_sessions.config import get_settings
from telnet_sessions.errors import (
    ConnectError,
    ConnectTimeoutError,
    InvalidEncodingError,
    NotConnectedError,
    SessionStateError,
    WriteError,
)
from telnet_sessions.network.buffer import ReceiveBuffer
from telnet_sessions.network.protocol import handle_protocol

logger = structlog.get_logger(__name__)

CRLF: Final[str] = "\r\n"

SUPPORTED_ENCODINGS: Final[tuple[str, ...]] = (
    "utf8",
    "base64",
    "hex",
    "binary",
    "ascii",
    "latin1",
)

_ENCODING_ALIASES: Final[dict[str, str]] = {
    "utf-8": "utf8",
    "latin-1": "latin1",
}

# 7-bit ascii: clear the high bit of every byte
_ASCII_TABLE: Final[bytes] = bytes(i & 0x7F for i in range(256))


def normalize_encoding(encoding: str) -> str:
    """
    Map an encoding name onto one of SUPPORTED_ENCODINGS.

    Raises:
        InvalidEncodingError: If the name is not supported
    """
    name = encoding.strip().lower()
    name = _ENCODING_ALIASES.get(name, name)
    if name not in SUPPORTED_ENCODINGS:
        raise InvalidEncodingError(encoding)
    return name


def decode_bytes(data: bytes, encoding: str = "utf8") -> str:
    """
    Render received bytes as text.

    Args:
        data: Bytes taken from a receive buffer
        encoding: One of SUPPORTED_ENCODINGS (or an accepted alias)

    Returns:
        The decoded text. ``base64`` and ``hex`` return the bytes encoded
        in that representation; invalid UTF-8 is replaced with U+FFFD.
    """
    name = normalize_encoding(encoding)
    if name == "utf8":
        return data.decode("utf-8", errors="replace")
    if name == "base64":
        return base64.b64encode(data).decode("ascii")
    if name == "hex":
        return data.hex()
    if name == "ascii":
        return data.translate(_ASCII_TABLE).decode("ascii")
    # binary and latin1 both map one byte to one code point
    return data.decode("latin-1")


class SessionState(str, Enum):
    """Lifecycle of a telnet session."""

    DISCONNECTED = "disconnected"  # Created, connect not attempted
    CONNECTING = "connecting"  # TCP handshake in flight
    ACTIVE = "active"  # Connected, transport attached
    FAILED = "failed"  # Connect failed or timed out
    CLOSED = "closed"  # Was active, now closed by either side


@dataclass(frozen=True)
class SessionInfo:
    """Read-only summary of a session for listings."""

    session_id: str
    host: str
    port: int
    connected_at: datetime | None
    is_active: bool

    def to_dict(self) -> dict[str, Any]:
        """Render the summary with camelCase keys and an ISO-8601 timestamp."""
        connected_at = None
        if self.connected_at is not None:
            connected_at = self.connected_at.isoformat(timespec="milliseconds").replace(
                "+00:00", "Z"
            )
        return {
            "sessionId": self.session_id,
            "host": self.host,
            "port": self.port,
            "connectedAt": connected_at,
            "isActive": self.is_active,
        }


@dataclass
class _Link:
    """Transport handles that exist only while a session is active."""

    reader: asyncio.StreamReader
    writer: asyncio.StreamWriter
    receiver: "asyncio.Task[None] | None" = None


class TelnetSession:
    """
    A single outbound telnet connection.

    The session owns one TCP stream. A background receiver task strips
    telnet commands from incoming data, refuses every option the peer
    proposes, and appends the remaining bytes to a bounded buffer that
    callers drain with ``read_response``.

    Sessions are single use: once a connect attempt fails or an active
    connection closes, create a new session to reconnect.
    """

    def __init__(
        self,
        session_id: str | None = None,
        max_buffer_size: int | None = None,
        read_chunk_size: int | None = None,
    ) -> None:
        """
        Initialize a disconnected session.

        Args:
            session_id: Identifier to use instead of a random UUID
            max_buffer_size: Receive buffer cap in bytes (defaults to settings)
            read_chunk_size: Bytes requested per socket read (defaults to settings)

        Raises:
            ValueError: If a size is zero or negative
        """
        settings = get_settings()
        self.id: str = session_id or str(uuid4())
        self.host: str = ""
        self.port: int = 0
        self.connected_at: datetime | None = None
        self.buffer = ReceiveBuffer(
            settings.max_buffer_size if max_buffer_size is None else max_buffer_size
        )
        self._read_chunk_size = (
            settings.read_chunk_size if read_chunk_size is None else read_chunk_size
        )
        if self._read_chunk_size <= 0:
            raise ValueError(f"read_chunk_size must be positive, got {self._read_chunk_size}")
        self._state = SessionState.DISCONNECTED
        self._link: _Link | None = None

    @property
    def state(self) -> SessionState:
        """Get current session state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the session has an open, usable transport."""
        return self._state is SessionState.ACTIVE and self._link is not None

    def info(self) -> SessionInfo:
        """Project the session onto a SessionInfo."""
        return SessionInfo(
            session_id=self.id,
            host=self.host,
            port=self.port,
            connected_at=self.connected_at,
            is_active=self.is_connected,
        )

    async def connect(self, host: str, port: int, timeout: float | None = None) -> None:
        """
        Open the TCP connection and start receiving.

        Args:
            host: Telnet server hostname or address
            port: Telnet server port
            timeout: Seconds to wait for the handshake (defaults to settings)

        Raises:
            ConnectTimeoutError: If the handshake does not finish in time
            ConnectError: If the peer refuses or cannot be reached
            SessionStateError: If this session already attempted a connect
        """
        if self._state is not SessionState.DISCONNECTED:
            raise SessionStateError(
                f"Session {self.id} cannot connect from state {self._state.value}"
            )

        if timeout is None:
            timeout = get_settings().connect_timeout

        self._state = SessionState.CONNECTING
        logger.info("connecting_to_telnet", session_id=self.id, host=host, port=port)

        try:
            # wait_for cancels the losing attempt, which closes its socket
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port), timeout=timeout
            )
        except TimeoutError:
            self._state = SessionState.FAILED
            logger.warning(
                "connection_timeout", session_id=self.id, host=host, port=port, timeout=timeout
            )
            raise ConnectTimeoutError(
                f"Connection timeout after {round(timeout * 1000)}ms"
            ) from None
        except (OSError, UnicodeError) as e:
            # UnicodeError: the host name failed IDNA encoding
            self._state = SessionState.FAILED
            logger.warning(
                "connection_failed", session_id=self.id, host=host, port=port, error=str(e)
            )
            raise ConnectError(f"Connection failed: {e}") from e

        self.host = host
        self.port = port
        self.connected_at = datetime.now(UTC)
        link = _Link(reader=reader, writer=writer)
        self._link = link
        self._state = SessionState.ACTIVE
        link.receiver = asyncio.create_task(
            self._receive_loop(link), name=f"telnet-receive-{self.id}"
        )

        logger.info("connected_to_telnet", session_id=self.id, host=host, port=port)

    async def send_command(self, command: str) -> None:
        """
        Send a line of text terminated by CR LF.

        Args:
            command: Text to send

        Raises:
            NotConnectedError: If the session is not active
            WriteError: If the transport write fails
        """
        link = self._link
        if link is None or not self.is_connected:
            raise NotConnectedError(f"Session {self.id} is not connected")

        try:
            link.writer.write(f"{command}{CRLF}".encode())
            await link.writer.drain()
        except OSError as e:
            logger.error("send_failed", session_id=self.id, error=str(e))
            raise WriteError(f"Failed to send command: {e}") from e

        logger.debug("command_sent", session_id=self.id, length=len(command))

    async def read_response(self, wait: float | None = None, encoding: str = "utf8") -> str:
        """
        Take everything buffered so far.

        The wait is a plain delay before draining. It does not guarantee the
        peer has answered by the time it elapses.

        Args:
            wait: Seconds to sleep before draining, if positive
            encoding: One of SUPPORTED_ENCODINGS

        Returns:
            The drained bytes decoded under ``encoding``; empty if nothing
            arrived since the previous read

        Raises:
            InvalidEncodingError: If ``encoding`` is not supported
        """
        name = normalize_encoding(encoding)

        if wait is not None and wait > 0:
            await asyncio.sleep(wait)

        data = self.buffer.drain()
        logger.debug("response_read", session_id=self.id, length=len(data), encoding=name)
        return decode_bytes(data, name)

    async def disconnect(self) -> None:
        """Close the connection. Does nothing if the session is not active."""
        link = self._link
        if link is None or self._state is not SessionState.ACTIVE:
            return

        logger.info("disconnecting_from_telnet", session_id=self.id)

        # Detach before awaiting so repeated calls return immediately
        self._link = None
        self._state = SessionState.CLOSED

        if link.receiver:
            link.receiver.cancel()
            try:
                await link.receiver
            except asyncio.CancelledError:
                pass

        link.writer.close()
        try:
            await link.writer.wait_closed()
        except OSError as e:
            logger.warning("disconnect_error", session_id=self.id, error=str(e))

        logger.info("disconnected_from_telnet", session_id=self.id)

    async def _receive_loop(self, link: _Link) -> None:
        """Background task feeding the receive buffer."""
        try:
            while True:
                chunk = await link.reader.read(self._read_chunk_size)
                if not chunk:
                    logger.info("server_closed_connection", session_id=self.id)
                    break

                clean, replies = handle_protocol(chunk)

                evicted = self.buffer.append(clean)
                if evicted:
                    logger.debug("receive_buffer_evicted", session_id=self.id, evicted=evicted)

                if replies:
                    for reply in replies:
                        link.writer.write(reply)
                    await link.writer.drain()

        except Exception as e:
            logger.warning("receive_error", session_id=self.id, error=str(e))

        await self._connection_lost(link)

    async def _connection_lost(self, link: _Link) -> None:
        """Mark the session closed after the peer or the transport went away."""
        if self._link is not link:
            return

        self._link = None
        self._state = SessionState.CLOSED
        link.writer.close()
        try:
            await link.writer.wait_closed()
        except OSError as e:
            logger.warning("disconnect_error", session_id=self.id, error=str(e))
        logger.info("session_inactive", session_id=self.id)

    def __str__(self) -> str:
        """String representation of session."""
        return f"TelnetSession({self.id}, {self._state.value})"

    def __repr__(self) -> str:
        """Detailed representation of session."""
        return (
            f"TelnetSession(id={self.id}, host={self.host}, port={self.port}, "
            f"state={self._state.value}, buffered={len(self.buffer)})"
        )

    async def __aenter__(self) -> "TelnetSession":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.disconnect()
