"""Tests for the session registry."""

import asyncio

import pytest

from telnet_sessions.errors import ConnectError, ConnectTimeoutError, SessionNotFoundError
from telnet_sessions.network.client import SessionInfo, SessionState, TelnetSession
from telnet_sessions.network.session import SessionManager


class TestSessionManager:
    """Test cases for SessionManager without connections."""

    def test_session_manager_initialization(self) -> None:
        """Test creating a new session manager."""
        manager = SessionManager()

        assert len(manager) == 0
        assert manager.list_sessions() == []

    def test_get_missing_session(self) -> None:
        manager = SessionManager()
        assert manager.get_session("00000000-0000-0000-0000-000000000000") is None
        assert "00000000-0000-0000-0000-000000000000" not in manager

    def test_require_missing_session(self) -> None:
        manager = SessionManager()
        with pytest.raises(SessionNotFoundError) as exc_info:
            manager.require_session("nope")
        assert exc_info.value.session_id == "nope"
        assert "nope" in str(exc_info.value)

    @pytest.mark.parametrize("size", [0, -1])
    def test_non_positive_buffer_size_rejected(self, size: int) -> None:
        with pytest.raises(ValueError):
            SessionManager(max_buffer_size=size)

    def test_not_found_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            SessionManager().require_session("nope")

    async def test_delete_missing_session(self) -> None:
        manager = SessionManager()
        assert await manager.delete_session("nope") is False
        assert len(manager) == 0


@pytest.mark.asyncio
class TestSessionManagerConnected:
    """Registry tests against a local echo server."""

    async def test_create_session(self, echo_server) -> None:
        """Test creating a session through the manager."""
        manager = SessionManager()
        session_id = await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
        try:
            session = manager.get_session(session_id)
            assert isinstance(session, TelnetSession)
            assert session.id == session_id
            assert session.is_connected
            assert session_id in manager
            assert manager.require_session(session_id) is session
        finally:
            await manager.close_all()

    async def test_buffer_size_passed_to_sessions(self, echo_server) -> None:
        manager = SessionManager(max_buffer_size=64)
        session_id = await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
        try:
            assert manager.require_session(session_id).buffer.max_size == 64
        finally:
            await manager.close_all()

    async def test_failed_connect_not_registered(self, unused_tcp_port) -> None:
        manager = SessionManager()
        with pytest.raises(ConnectError):
            await manager.create_session("127.0.0.1", unused_tcp_port, timeout=2.0)
        assert len(manager) == 0
        assert manager.list_sessions() == []

    async def test_timeout_not_registered(self, monkeypatch) -> None:
        async def never_connects(*args, **kwargs):
            await asyncio.sleep(3600)

        monkeypatch.setattr(asyncio, "open_connection", never_connects)

        manager = SessionManager()
        with pytest.raises(ConnectTimeoutError):
            await manager.create_session("192.0.2.1", 23, timeout=0.02)
        assert len(manager) == 0

    async def test_concurrent_ids_unique(self, echo_server) -> None:
        """Test N concurrent creations yield N distinct identifiers."""
        manager = SessionManager()
        try:
            ids = await asyncio.gather(
                *(manager.create_session("127.0.0.1", echo_server.port, timeout=2.0) for _ in range(10))
            )
            assert len(set(ids)) == 10
            assert len(manager) == 10
        finally:
            await manager.close_all()

    async def test_delete_disconnects(self, echo_server) -> None:
        manager = SessionManager()
        session_id = await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
        session = manager.require_session(session_id)

        assert await manager.delete_session(session_id) is True
        assert session.is_connected is False
        assert session.state == SessionState.CLOSED
        assert manager.get_session(session_id) is None
        assert await manager.delete_session(session_id) is False

    async def test_delete_inactive_session(self, peer_server, wait_until) -> None:
        """Test a session whose peer hung up stays listed until deleted."""
        server = await peer_server(echo=False)
        manager = SessionManager()
        session_id = await manager.create_session("127.0.0.1", server.port, timeout=2.0)
        session = manager.require_session(session_id)

        await wait_until(lambda: server.client_count == 1)
        await server.drop_clients()
        await wait_until(lambda: not session.is_connected)

        [info] = manager.list_sessions()
        assert info.session_id == session_id
        assert info.is_active is False

        assert await manager.delete_session(session_id) is True
        assert len(manager) == 0

    async def test_registry_completeness(self, echo_server) -> None:
        """Test listing after creating C sessions and deleting D of them."""
        manager = SessionManager()
        ids = [
            await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
            for _ in range(5)
        ]
        deleted = {ids[1], ids[3]}
        for session_id in deleted:
            await manager.delete_session(session_id)

        try:
            infos = manager.list_sessions()
            assert len(infos) == 3
            assert [info.session_id for info in infos] == [i for i in ids if i not in deleted]
            for info in infos:
                assert isinstance(info, SessionInfo)
                session = manager.require_session(info.session_id)
                assert info.host == "127.0.0.1"
                assert info.port == echo_server.port
                assert info.connected_at == session.connected_at
                assert info.is_active is True
        finally:
            await manager.close_all()

    async def test_close_all(self, echo_server) -> None:
        manager = SessionManager()
        sessions = []
        for _ in range(3):
            session_id = await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
            sessions.append(manager.require_session(session_id))

        assert await manager.close_all() == 3
        assert len(manager) == 0
        assert all(not session.is_connected for session in sessions)

    async def test_sessions_independent(self, echo_server, wait_until) -> None:
        """Test data sent on one session never shows up in another."""
        manager = SessionManager()
        first = manager.require_session(
            await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
        )
        second = manager.require_session(
            await manager.create_session("127.0.0.1", echo_server.port, timeout=2.0)
        )
        try:
            await asyncio.gather(first.send_command("alpha"), second.send_command("beta"))
            await wait_until(lambda: len(first.buffer) >= 7 and len(second.buffer) >= 6)
            assert await first.read_response() == "alpha\r\n"
            assert await second.read_response() == "beta\r\n"
        finally:
            await manager.close_all()
