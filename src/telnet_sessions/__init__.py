"""Telnet sessions: addressable, multi-session telnet client connections.

Usage:
    manager = SessionManager()
    session_id = await manager.create_session("localhost", 23)
    session = manager.require_session(session_id)
    await session.send_command("help")
    print(await session.read_response(wait=0.5))
    await manager.delete_session(session_id)
"""

from telnet_sessions.errors import (
    ConnectError,
    ConnectTimeoutError,
    InvalidEncodingError,
    NotConnectedError,
    SessionNotFoundError,
    SessionStateError,
    TelnetSessionError,
    UnsupportedCommandError,
    WriteError,
)
from telnet_sessions.network import (
    ReceiveBuffer,
    SessionInfo,
    SessionManager,
    SessionState,
    TelnetSession,
)
from telnet_sessions.tools import TelnetTools

__version__ = "0.1.0"

__all__ = [
    # Sessions
    "SessionManager",
    "TelnetSession",
    "SessionInfo",
    "SessionState",
    "ReceiveBuffer",
    # Tools
    "TelnetTools",
    # Errors
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
