"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rawhttpd import HTTPServer, ServerConfig
from rawhttpd.core import Connection, MemoryStream
from rawhttpd.handlers import default_routes


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP/1.0 GET request."""
    return (
        b"GET /hello?name=world HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: text/html\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP/1.0 POST request with a declared body."""
    return (
        b"POST /echo HTTP/1.0\r\n"
        b"Content-Type: text/plain\r\n"
        b"Content-Length: 5\r\n"
        b"\r\n"
        b"hello"
    )


def make_connection(data: bytes, chunk_size: Optional[int] = None) -> Connection:
    """A Connection over in-memory bytes."""
    return Connection(stream=MemoryStream(data, chunk_size=chunk_size), address=("127.0.0.1", 50000))


# =============================================================================
# FAKE STREAMS AND LISTENERS
# =============================================================================

class FakeStream(MemoryStream):
    """MemoryStream that counts close() calls and can fail on demand."""

    def __init__(self, data: bytes = b"", fail_write: bool = False, fail_read: bool = False):
        super().__init__(data)
        self.close_calls = 0
        self.timeout = None
        self.fail_write = fail_write
        self.fail_read = fail_read

    def read(self, buffer: bytearray) -> int:
        if self.fail_read:
            raise ConnectionResetError("connection reset by peer")
        return super().read(buffer)

    def write(self, data: bytes) -> int:
        if self.fail_write:
            raise BrokenPipeError("broken pipe")
        return super().write(data)

    def set_timeout(self, timeout) -> None:
        self.timeout = timeout

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class FakeListener:
    """
    Hands out FakeStreams in order, one per accept().

    Raises OSError once the scripted streams run out so a runaway loop
    fails loudly instead of hanging.
    """

    def __init__(self, streams: List[FakeStream]):
        self.streams = list(streams)
        self.accepted: List[FakeStream] = []

    def accept(self) -> Tuple[FakeStream, Tuple[str, int]]:
        if not self.streams:
            raise OSError("no more scripted connections")
        stream = self.streams.pop(0)
        self.accepted.append(stream)
        return stream, ("127.0.0.1", 40000 + len(self.accepted))


@pytest.fixture
def fake_listener_factory():
    """Build a FakeListener from raw request payloads."""
    def factory(*payloads: bytes) -> FakeListener:
        return FakeListener([FakeStream(p) for p in payloads])
    return factory


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# BACKGROUND SERVER
# =============================================================================

class BackgroundServer:
    """Runs HTTPServer.serve() in a thread for a fixed number of connections."""

    def __init__(self, server: HTTPServer, max_connections: int):
        self.server = server
        self.max_connections = max_connections
        self.served = None
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self) -> "BackgroundServer":
        listener = self.server.start()
        self._thread = threading.Thread(target=self._run, args=(listener,), daemon=True)
        self._thread.start()
        return self

    def _run(self, listener) -> None:
        self.served = self.server.serve(listener, max_connections=self.max_connections)

    def request(self, raw: bytes, timeout: float = 5.0) -> bytes:
        """Send raw bytes, half-close, read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=timeout) as client:
            if raw:
                client.sendall(raw)
            client.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = client.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread and self._thread.is_alive():
            self.server.shutdown()
            self._thread.join(timeout=timeout)
        self.server.close()


@pytest.fixture
def background_server(config: ServerConfig) -> Generator:
    """Start a server with the default routes; call it with a connection count."""
    started = []

    def start(max_connections: int, routes=None) -> BackgroundServer:
        server = HTTPServer(routes if routes is not None else default_routes(), config)
        bg = BackgroundServer(server, max_connections).start()
        started.append(bg)
        return bg

    yield start

    for bg in started:
        bg.stop()


@pytest.fixture
def connection_factory():
    """Build a Connection over in-memory bytes."""
    return make_connection


@pytest.fixture
def fake_stream_factory():
    """Build a FakeStream (counts close() calls, can fail reads/writes)."""
    return FakeStream
