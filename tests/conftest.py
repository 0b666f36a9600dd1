"""Shared fixtures for all tests."""

import asyncio
from collections.abc import Callable

import pytest

from telnet_sessions.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Clear cached settings so environment overrides in a test take effect."""
    monkeypatch.delenv("TELNET_SESSIONS_MAX_BUFFER_SIZE", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class PeerServer:
    """
    Local TCP server standing in for a telnet host.

    Records every byte it receives. Optionally sends a greeting on accept
    and echoes what it receives.
    """

    def __init__(self, greeting: bytes = b"", echo: bool = True) -> None:
        self.greeting = greeting
        self.echo = echo
        self.received = bytearray()
        self.port = 0
        self._server: asyncio.Server | None = None
        self._writers: list[asyncio.StreamWriter] = []

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.append(writer)
        try:
            if self.greeting:
                writer.write(self.greeting)
                await writer.drain()
            while chunk := await reader.read(4096):
                self.received += chunk
                if self.echo:
                    writer.write(chunk)
                    await writer.drain()
        except ConnectionError:
            pass
        finally:
            writer.close()

    @property
    def client_count(self) -> int:
        return len(self._writers)

    async def start(self) -> "PeerServer":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]
        return self

    async def drop_clients(self) -> None:
        """Close every accepted connection from the server side."""
        for writer in self._writers:
            writer.close()

    async def stop(self) -> None:
        await self.drop_clients()
        if self._server is not None:
            self._server.close()
            await asyncio.wait_for(self._server.wait_closed(), timeout=5.0)
            self._server = None


@pytest.fixture
async def echo_server():
    """A running echo server."""
    server = await PeerServer().start()
    yield server
    await server.stop()


@pytest.fixture
async def peer_server():
    """Factory for servers with a custom greeting or echo behaviour."""
    servers: list[PeerServer] = []

    async def _start(greeting: bytes = b"", echo: bool = True) -> PeerServer:
        server = await PeerServer(greeting=greeting, echo=echo).start()
        servers.append(server)
        return server

    yield _start

    for server in servers:
        await server.stop()


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or fail after a timeout."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.01)

    return _wait_until
