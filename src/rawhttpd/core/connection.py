"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted stream with the buffering the request parser needs.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

    Client sends:
        GET /hello HTTP/1.0\r\n
        Host: localhost\r\n
        \r\n

    Server might receive:
        First read():  "GET /hel"
        Second read(): "lo HTTP/1.0\r\nHost: loc"
        Third read():  "alhost\r\n\r\n"

So the parser never works on raw read() results. It asks the
Connection for "one line" or "exactly N bytes", and the Connection keeps
calling read() and buffering until it can answer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      CONNECTION BUFFER                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   stream.read() ──► [ G E T   / h e l l o   H T T P / 1 . 0 \r \n ] │
    │                       └──────────── read_line() ─────────────┘      │
    │                                                                      │
    │   leftover bytes stay in the buffer for the next call               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATES
=============================================================================

    NEW ──► READING ──► ROUTING ──► WRITING ──► CLOSED
               │           │                      ▲
               └───────────┴──── error ───────────┘

A connection is closed exactly once, whatever path it took.

=============================================================================
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..errors import ParseError
from .socket_handle import Stream


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single request/response cycle."""
    NEW = "new"              # Just accepted
    READING = "reading"      # Parsing the request
    ROUTING = "routing"      # Request parsed, picking and running a handler
    WRITING = "writing"      # Sending the response
    CLOSED = "closed"        # Descriptor released


@dataclass
class Connection:
    """
    One client connection, used for exactly one request/response exchange.

    Attributes:
        stream: The accepted stream (a SocketHandle in production).
        address: Client's (ip, port) tuple.
        id: Short identifier used as a log prefix.
        state: Current ConnectionState.
        buffer_size: How many bytes to ask for per read().
        bytes_read: Total bytes pulled from the stream.
        bytes_written: Total bytes pushed to the stream.
    """

    stream: Stream
    address: Tuple[str, int] = ("", 0)

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    buffer_size: int = 4096

    bytes_read: int = 0
    bytes_written: int = 0

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def _fill(self) -> bool:
        """Pull one read() worth of bytes into the buffer. False on EOF."""
        chunk = bytearray(self.buffer_size)
        n = self.stream.read(chunk)
        if n == 0:
            return False
        self._buffer += chunk[:n]
        self.bytes_read += n
        return True

    def read_line(self, max_length: int = 8192) -> Optional[bytes]:
        """
        Read one line terminated by CRLF (a bare LF is tolerated).

        Args:
            max_length: Longest line accepted, terminator excluded.

        Returns:
            The line without its terminator, or None if the stream hit EOF
            before any byte of the line arrived.

        Raises:
            ParseError: EOF in the middle of a line, or line too long (431).
        """
        self.state = ConnectionState.READING
        while True:
            newline = self._buffer.find(b"\n")
            if newline >= 0:
                line = bytes(self._buffer[:newline])
                del self._buffer[:newline + 1]
                if line.endswith(b"\r"):
                    line = line[:-1]
                if len(line) > max_length:
                    raise ParseError(f"Line too long: {len(line)} bytes", status_code=431)
                return line

            if len(self._buffer) > max_length + 1:
                raise ParseError(f"Line too long: over {max_length} bytes", status_code=431)

            if not self._fill():
                if not self._buffer:
                    return None
                raise ParseError("Unexpected EOF in the middle of a line")

    def read_exact(self, n: int) -> bytes:
        """
        Read exactly n bytes.

        Raises:
            ParseError: If the stream ends first.
        """
        self.state = ConnectionState.READING
        while len(self._buffer) < n:
            if not self._fill():
                raise ParseError(
                    f"Incomplete body: expected {n} bytes, got {len(self._buffer)}"
                )
        data = bytes(self._buffer[:n])
        del self._buffer[:n]
        return data

    def read_some(self, limit: int) -> bytes:
        """
        Read up to limit bytes with at most one blocking read().

        Already-buffered bytes are returned without touching the stream.
        Bytes beyond the limit are left unread.
        """
        self.state = ConnectionState.READING
        if not self._buffer:
            self._fill()
        data = bytes(self._buffer[:limit])
        del self._buffer[:limit]
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> int:
        """
        Send every byte of data.

        Raises:
            OSError: Whatever the stream raised (peer reset, broken pipe).
        """
        self.state = ConnectionState.WRITING
        written = self.stream.write_all(data)
        self.bytes_written += written
        return written

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self) -> None:
        """Close the underlying stream. Safe to call more than once."""
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        self.stream.close()
        logger.debug(
            f"[{self.id}] Connection closed: {self.bytes_read} bytes in, "
            f"{self.bytes_written} bytes out, {self.age * 1000:.1f}ms"
        )

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
