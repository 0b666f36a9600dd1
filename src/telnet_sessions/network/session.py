"""Session registry for telnet connections."""

import structlog

from telnet_sessions.config import get_settings
from telnet_sessions.errors import SessionNotFoundError
from telnet_sessions.network.client import SessionInfo, TelnetSession

logger = structlog.get_logger(__name__)


class SessionManager:
    """
    Owns every live telnet session in memory.

    Sessions are registered only after they connect and leave only through
    ``delete_session``; a session whose peer hung up stays listed, inactive,
    until it is deleted.
    """

    def __init__(self, max_buffer_size: int | None = None) -> None:
        """
        Initialize the session manager with in-memory storage.

        Args:
            max_buffer_size: Receive buffer cap for new sessions (defaults to settings)
        """
        self._sessions: dict[str, TelnetSession] = {}
        self._settings = get_settings()
        if max_buffer_size is None:
            max_buffer_size = self._settings.max_buffer_size
        if max_buffer_size <= 0:
            raise ValueError(f"max_buffer_size must be positive, got {max_buffer_size}")
        self._max_buffer_size = max_buffer_size
        logger.info("session_manager_initialized")

    async def create_session(self, host: str, port: int, timeout: float | None = None) -> str:
        """
        Connect a new session and register it.

        Args:
            host: Telnet server hostname or address
            port: Telnet server port
            timeout: Connect timeout in seconds (defaults to settings)

        Returns:
            The new session's ID

        Raises:
            ConnectError: If the connection cannot be made (the session is
                discarded); ConnectTimeoutError if it timed out
        """
        session = TelnetSession(max_buffer_size=self._max_buffer_size)
        await session.connect(host, port, timeout)

        self._sessions[session.id] = session

        logger.info(
            "session_created_by_manager",
            session_id=session.id,
            host=host,
            port=port,
            total_sessions=len(self._sessions),
        )

        return session.id

    def get_session(self, session_id: str) -> TelnetSession | None:
        """
        Retrieve a session by ID.

        Args:
            session_id: The session ID to look up

        Returns:
            The session if found, None otherwise
        """
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> TelnetSession:
        """
        Retrieve a session by ID, failing if it is unknown.

        Raises:
            SessionNotFoundError: If no session has this ID
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def delete_session(self, session_id: str) -> bool:
        """
        Disconnect a session if needed and stop tracking it.

        Args:
            session_id: The session ID to delete

        Returns:
            True if the session was deleted, False if not found
        """
        session = self._sessions.get(session_id)
        if session is None:
            return False

        if session.is_connected:
            await session.disconnect()

        self._sessions.pop(session_id, None)
        logger.info(
            "session_destroyed",
            session_id=session_id,
            total_sessions=len(self._sessions),
        )
        return True

    def list_sessions(self) -> list[SessionInfo]:
        """
        Summarize every registered session, in registration order.

        Returns:
            One SessionInfo per session
        """
        return [session.info() for session in self._sessions.values()]

    async def close_all(self) -> int:
        """
        Delete every registered session.

        Returns:
            Number of sessions removed
        """
        session_ids = list(self._sessions)
        for session_id in session_ids:
            await self.delete_session(session_id)
        return len(session_ids)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        """Return the number of registered sessions."""
        return len(self._sessions)
