"""Tool-call facade over the session registry.

Each tool validates its arguments with a Pydantic model, calls into the
registry or a session, and returns a JSON-ready dictionary. Failures are
raised as the exceptions in ``telnet_sessions.errors`` (or
``pydantic.ValidationError`` for bad arguments) so the caller can tell them
apart.
"""

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from telnet_sessions.config import get_settings
from telnet_sessions.network.session import SessionManager

logger = structlog.get_logger(__name__)


class _ToolArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)


class ConnectArgs(_ToolArgs):
    """Arguments for ``telnet_connect``."""

    host: str = Field(min_length=1, description="Telnet server hostname or IP address")
    port: int = Field(ge=1, le=65535, description="Telnet server port number")
    timeout: int = Field(
        default_factory=lambda: get_settings().connect_timeout_ms,
        gt=0,
        description="Connection timeout in milliseconds",
    )


class SendArgs(_ToolArgs):
    """Arguments for ``telnet_send``."""

    session_id: str = Field(alias="sessionId", description="Session ID from telnet_connect")
    command: str = Field(description="Command to send to the Telnet server")


class ReadArgs(_ToolArgs):
    """Arguments for ``telnet_read``."""

    session_id: str = Field(alias="sessionId", description="Session ID from telnet_connect")
    wait_ms: int | None = Field(
        default=None, gt=0, alias="waitMs", description="Time to wait for data in milliseconds"
    )
    encoding: str = Field(
        default_factory=lambda: get_settings().default_encoding,
        description="utf8, base64, hex, binary, ascii or latin1",
    )


class DisconnectArgs(_ToolArgs):
    """Arguments for ``telnet_disconnect``."""

    session_id: str = Field(alias="sessionId", description="Session ID to disconnect")


class TelnetTools:
    """
    The five telnet tools bound to one SessionManager.

    Usage:
        tools = TelnetTools(SessionManager())
        result = await tools.connect(host="localhost", port=23)
        await tools.send(sessionId=result["sessionId"], command="help")
    """

    TOOL_DESCRIPTIONS: dict[str, str] = {
        "telnet_connect": "Connect to a Telnet server",
        "telnet_send": "Send a command to an active Telnet session",
        "telnet_read": "Read response from an active Telnet session",
        "telnet_disconnect": "Disconnect from a Telnet session",
        "telnet_list": "List all active Telnet sessions",
    }

    def __init__(self, manager: SessionManager) -> None:
        self.manager = manager
        self._handlers: dict[str, Callable[..., Awaitable[dict[str, Any]]]] = {
            "telnet_connect": self.connect,
            "telnet_send": self.send,
            "telnet_read": self.read,
            "telnet_disconnect": self.disconnect,
            "telnet_list": self.list_sessions,
        }

    @property
    def tool_names(self) -> list[str]:
        """Names of every registered tool."""
        return list(self._handlers)

    async def call(self, name: str, arguments: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """
        Dispatch a tool call by name.

        Raises:
            KeyError: If no tool has this name
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise KeyError(f"Unknown tool: {name}")
        logger.debug("tool_called", tool=name)
        return await handler(**dict(arguments or {}))

    async def connect(self, **arguments: Any) -> dict[str, Any]:
        """Open a session and return its ID."""
        args = ConnectArgs.model_validate(arguments)
        session_id = await self.manager.create_session(
            args.host, args.port, timeout=args.timeout / 1000
        )
        return {
            "success": True,
            "sessionId": session_id,
            "message": f"Connected to {args.host}:{args.port}",
        }

    async def send(self, **arguments: Any) -> dict[str, Any]:
        """Send one command line to a session."""
        args = SendArgs.model_validate(arguments)
        session = self.manager.require_session(args.session_id)
        await session.send_command(args.command)
        return {"success": True, "message": "Command sent successfully"}

    async def read(self, **arguments: Any) -> dict[str, Any]:
        """Drain and decode a session's receive buffer."""
        args = ReadArgs.model_validate(arguments)
        session = self.manager.require_session(args.session_id)
        wait = args.wait_ms / 1000 if args.wait_ms else None
        data = await session.read_response(wait, args.encoding)
        return {"success": True, "data": data}

    async def disconnect(self, **arguments: Any) -> dict[str, Any]:
        """Disconnect and forget a session. Unknown IDs are ignored."""
        args = DisconnectArgs.model_validate(arguments)
        await self.manager.delete_session(args.session_id)
        return {"success": True, "message": "Session disconnected successfully"}

    async def list_sessions(self, **arguments: Any) -> dict[str, Any]:
        """Summarize every registered session."""
        if arguments:
            raise TypeError(f"telnet_list takes no arguments, got {sorted(arguments)}")
        return {
            "success": True,
            "sessions": [info.to_dict() for info in self.manager.list_sessions()],
        }
