"""Network layer for telnet sessions - IAC codec, sessions and registry."""

from telnet_sessions.network.buffer import ReceiveBuffer
from telnet_sessions.network.client import (
    SUPPORTED_ENCODINGS,
    SessionInfo,
    SessionState,
    TelnetSession,
    decode_bytes,
)
from telnet_sessions.network.protocol import (
    TelnetSequence,
    handle_protocol,
    negotiate_reply,
    split_sequences,
)
from telnet_sessions.network.session import SessionManager

__all__ = [
    "ReceiveBuffer",
    "SessionInfo",
    "SessionManager",
    "SessionState",
    "SUPPORTED_ENCODINGS",
    "TelnetSequence",
    "TelnetSession",
    "decode_bytes",
    "handle_protocol",
    "negotiate_reply",
    "split_sequences",
]
