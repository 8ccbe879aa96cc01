"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import pytest
import pytest_asyncio
from contextlib import closing
from typing import AsyncGenerator, Dict, List, Optional

from resp_client.network.connection import Connection
from resp_client.protocol.decoder import ResponseDecoder
from resp_client.protocol.encoder import CommandEncoder
from resp_client.protocol.errors import NeedMoreBytes, ParseError


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# ============================================================================
# Protocol Fixtures
# ============================================================================

@pytest.fixture
def encoder() -> CommandEncoder:
    """Create a CommandEncoder with no validator."""
    return CommandEncoder()


@pytest.fixture
def decoder() -> ResponseDecoder:
    """Create a ResponseDecoder with default limits."""
    return ResponseDecoder()


# ============================================================================
# In-Memory Streams
# ============================================================================

class FakeStream:
    """
    Scripted duplex stream.

    Each read returns the next queued chunk (split to the requested size),
    then b'' once the queue is empty. Everything written is collected in
    ``written``.
    """

    def __init__(
            self,
            chunks: List[bytes] = (),
            read_error: Optional[Exception] = None,
            write_error: Optional[Exception] = None,
            max_write: Optional[int] = None,
    ):
        self.chunks = list(chunks)
        self.read_error = read_error
        self.write_error = write_error
        self.max_write = max_write
        self.written = bytearray()
        self.reads = 0
        self.writes = 0

    def read(self, size: int) -> bytes:
        self.reads += 1
        if self.read_error is not None:
            raise self.read_error
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if len(chunk) > size:
            self.chunks.insert(0, chunk[size:])
            chunk = chunk[:size]
        return chunk

    def write(self, data) -> int:
        self.writes += 1
        if self.write_error is not None:
            raise self.write_error
        data = bytes(data)
        if self.max_write is not None:
            data = data[:self.max_write]
        self.written.extend(data)
        return len(data)

    def feed(self, *chunks: bytes) -> None:
        self.chunks.extend(chunks)


@pytest.fixture
def stream_factory():
    """
    Factory fixture to build FakeStreams with custom behaviour.

    Usage:
        def test_something(stream_factory):
            stream = stream_factory([b"+OK\r\n"], max_write=3)
    """
    return FakeStream


@pytest.fixture
def stream() -> FakeStream:
    """Create an empty FakeStream; queue replies with stream.feed()."""
    return FakeStream()


@pytest.fixture
def connection(stream: FakeStream) -> Connection:
    """Create a Connection over the ``stream`` fixture."""
    return Connection("127.0.0.1", 6379, stream)


# ============================================================================
# Stub Server
# ============================================================================

class StubServer:
    """
    Minimal asyncio key-value server speaking the wire protocol.

    Requests are decoded with the client's own ResponseDecoder (a request
    is an array of bulk strings). Supports PING, ECHO, GET, SET, APPEND,
    DEL and COPY, plus HANGUP which writes half a reply and closes.

    Attributes:
        data: The server's key space
        chunk_size: When set, replies are written in pieces of this size
    """

    def __init__(self, host: str, port: int, chunk_size: Optional[int] = None):
        self.host = host
        self.port = port
        self.chunk_size = chunk_size
        self.data: Dict[bytes, bytes] = {}
        self.requests: List[List[bytes]] = []
        self.decoder = ResponseDecoder()
        self._server: Optional[asyncio.Server] = None
        self._writers = set()

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self.handle_client, self.host, self.port
        )

    async def stop(self) -> None:
        for writer in list(self._writers):
            writer.close()
        if self._server:
            self._server.close()
            await self._server.wait_closed()

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._writers.add(writer)
        buffer = bytearray()
        try:
            while True:
                chunk = await reader.read(4096)
                if not chunk:
                    break
                buffer.extend(chunk)

                while True:
                    try:
                        request, consumed = self.decoder.decode(buffer)
                    except NeedMoreBytes:
                        break
                    del buffer[:consumed]

                    args = [item.data for item in request.items]
                    self.requests.append(args)
                    reply = self.execute(args)
                    if reply is None:
                        writer.write(b"$10\r\nabc")
                        await writer.drain()
                        return
                    await self._send(writer, reply)
        except (ConnectionResetError, ParseError):
            pass
        finally:
            self._writers.discard(writer)
            writer.close()

    async def _send(self, writer: asyncio.StreamWriter, reply: bytes) -> None:
        if not self.chunk_size:
            writer.write(reply)
            await writer.drain()
            return
        for start in range(0, len(reply), self.chunk_size):
            writer.write(reply[start:start + self.chunk_size])
            await writer.drain()
            await asyncio.sleep(0.001)

    def execute(self, args: List[bytes]) -> Optional[bytes]:
        if not args:
            return b"-ERR empty command\r\n"

        name, rest = args[0].upper(), args[1:]

        if name == b"HANGUP":
            return None
        if name == b"PING":
            return bulk(rest[0]) if rest else b"+PONG\r\n"
        if name == b"ECHO" and len(rest) == 1:
            return bulk(rest[0])
        if name == b"GET" and len(rest) == 1:
            value = self.data.get(rest[0])
            return b"$-1\r\n" if value is None else bulk(value)
        if name == b"SET" and len(rest) == 2:
            self.data[rest[0]] = rest[1]
            return b"+OK\r\n"
        if name == b"APPEND" and len(rest) == 2:
            self.data[rest[0]] = self.data.get(rest[0], b"") + rest[1]
            return b":%d\r\n" % len(self.data[rest[0]])
        if name == b"DEL" and rest:
            removed = sum(1 for key in rest if self.data.pop(key, None) is not None)
            return b":%d\r\n" % removed
        if name == b"COPY" and len(rest) in (2, 3):
            source, destination = rest[0], rest[1]
            replace = len(rest) == 3 and rest[2].upper() == b"REPLACE"
            if source not in self.data or (destination in self.data and not replace):
                return b":0\r\n"
            self.data[destination] = self.data[source]
            return b":1\r\n"

        return b"-ERR unknown command '" + args[0] + b"'\r\n"


def bulk(value: bytes) -> bytes:
    """Serialize a bulk string reply."""
    return b"$%d\r\n%s\r\n" % (len(value), value)


@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest_asyncio.fixture
async def server(server_port: int) -> AsyncGenerator[StubServer, None]:
    """
    Create and start a stub server for testing.

    This fixture:
    1. Starts a StubServer on a random free port
    2. Yields the server for testing
    3. Closes open client connections and the listener afterwards
    """
    srv = StubServer(host='127.0.0.1', port=server_port)
    await srv.start()

    yield srv

    await srv.stop()


@pytest_asyncio.fixture
async def server_connection(
    server: StubServer,
    server_port: int
) -> AsyncGenerator[Connection, None]:
    """
    Create a Connection over a real socket to the stub server.

    The Connection blocks, so tests call it through asyncio.to_thread().
    """
    sock = await asyncio.to_thread(
        socket.create_connection, ('127.0.0.1', server_port), 5.0
    )

    yield Connection('127.0.0.1', server_port, sock)

    sock.close()


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )

