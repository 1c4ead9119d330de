"""
Unit tests for socket handles, listeners and buffered connections.
"""

import socket

import pytest

from rawhttpd.core import (
    Connection,
    ConnectionState,
    MemoryStream,
    SocketHandle,
    create_listener,
)
from rawhttpd.errors import ParseError, SetupError


@pytest.fixture
def socket_pair():
    a, b = socket.socketpair()
    left, right = SocketHandle(a), SocketHandle(b)
    yield left, right
    left.close()
    right.close()


class TestSocketHandle:
    """Tests for SocketHandle over a real socket pair."""

    def test_read_write(self, socket_pair):
        left, right = socket_pair

        assert left.write_all(b"ping") == 4

        buf = bytearray(16)
        n = right.read(buf)
        assert bytes(buf[:n]) == b"ping"

    def test_read_returns_zero_on_eof(self, socket_pair):
        left, right = socket_pair
        left.close()

        assert right.read(bytearray(16)) == 0

    def test_close_is_idempotent(self, socket_pair):
        left, _ = socket_pair
        fd = left.fileno

        left.close()
        left.close()

        assert left.closed is True
        assert left.fileno == fd
        assert "closed" in repr(left)

    def test_empty_buffer_reads_nothing(self, socket_pair):
        left, _ = socket_pair
        assert left.read(bytearray()) == 0


class TestListener:
    """Tests for create_listener."""

    def test_bind_port_zero(self):
        listener = create_listener("127.0.0.1", 0)
        try:
            host, port = listener.local_address()
            assert host == "127.0.0.1"
            assert port > 0
            opt = listener.raw_socket.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR)
            assert opt != 0
        finally:
            listener.close()

    def test_accept(self):
        listener = create_listener("127.0.0.1", 0)
        try:
            client = socket.create_connection(listener.local_address(), timeout=5)
            conn, address = listener.accept()
            try:
                assert isinstance(conn, SocketHandle)
                assert address[0] == "127.0.0.1"
                client.sendall(b"hi")
                buf = bytearray(8)
                assert bytes(buf[:conn.read(buf)]) == b"hi"
            finally:
                conn.close()
                client.close()
        finally:
            listener.close()

    def test_invalid_address_is_setup_error(self):
        with pytest.raises(SetupError) as exc_info:
            create_listener("256.0.0.1", 0)

        assert exc_info.value.step == "bind"

    def test_address_in_use_is_setup_error(self):
        first = create_listener("127.0.0.1", 0)
        try:
            port = first.local_address()[1]
            with pytest.raises(SetupError) as exc_info:
                create_listener("127.0.0.1", port)
            assert exc_info.value.step == "bind"
        finally:
            first.close()


class TestConnection:
    """Tests for buffered reads on a Connection."""

    def test_read_line(self, connection_factory):
        conn = connection_factory(b"first\r\nsecond\nthird")

        assert conn.read_line() == b"first"
        assert conn.read_line() == b"second"
        assert conn.state == ConnectionState.READING

    def test_read_line_none_at_clean_eof(self, connection_factory):
        conn = connection_factory(b"")
        assert conn.read_line() is None

    def test_read_line_eof_mid_line(self, connection_factory):
        conn = connection_factory(b"partial")
        with pytest.raises(ParseError):
            conn.read_line()

    def test_read_line_too_long(self, connection_factory):
        conn = connection_factory(b"x" * 100 + b"\r\n", chunk_size=10)
        with pytest.raises(ParseError) as exc_info:
            conn.read_line(max_length=20)

        assert exc_info.value.status_code == 431

    def test_read_line_across_chunks(self, connection_factory):
        conn = connection_factory(b"GET / HTTP/1.0\r\n", chunk_size=3)
        assert conn.read_line() == b"GET / HTTP/1.0"

    def test_read_exact(self, connection_factory):
        conn = connection_factory(b"header\r\nbody-bytes", chunk_size=4)
        conn.read_line()

        assert conn.read_exact(4) == b"body"
        assert conn.read_exact(6) == b"-bytes"

    def test_read_exact_short(self, connection_factory):
        conn = connection_factory(b"abc")
        with pytest.raises(ParseError):
            conn.read_exact(5)

    def test_read_some_single_read(self, connection_factory):
        conn = connection_factory(b"abcdefgh", chunk_size=3)

        assert conn.read_some(100) == b"abc"

    def test_read_some_respects_limit(self, connection_factory):
        conn = connection_factory(b"abcdefgh")

        assert conn.read_some(5) == b"abcde"

    def test_send_counts_bytes(self):
        stream = MemoryStream()
        conn = Connection(stream=stream)

        conn.send(b"hello")

        assert stream.written == bytearray(b"hello")
        assert conn.bytes_written == 5
        assert conn.state == ConnectionState.WRITING

    def test_close_once(self, fake_stream_factory):
        stream = fake_stream_factory()
        conn = Connection(stream=stream)

        with conn:
            pass
        conn.close()

        assert conn.state == ConnectionState.CLOSED
        assert stream.close_calls == 1

    def test_client_ip(self, connection_factory):
        assert connection_factory(b"").client_ip == "127.0.0.1"
