"""
=============================================================================
SOCKET HANDLE
=============================================================================

The lowest layer of the server: a thin wrapper over one OS socket.

Every socket the OS hands us is, underneath, just an integer file
descriptor. Python's socket module is a thin layer over the C calls:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   PYTHON CALL  →  SYSTEM CALL                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   sock.recv_into(buf)     →   recv(fd, buf, len, 0)                 │
    │   sock.send(data)         →   send(fd, data, len, 0)                │
    │   sock.accept()           →   accept4(fd, &addr, &len, CLOEXEC)     │
    │   sock.close()            →   close(fd)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

SocketHandle keeps exactly that surface (read / write / accept / close)
and nothing more. Buffering, parsing and HTTP live in higher layers.

=============================================================================
WHY AN ABSTRACT STREAM?
=============================================================================

Parsing and routing only ever see a `Stream`. Today the only real
implementation is a blocking socket, but the same parser works on:

    - SocketHandle     (production: a TCP connection)
    - MemoryStream     (parse_request(b"GET / ..."), tests)
    - any future non-blocking / async backend

without changing a line of parsing or routing code.

=============================================================================
BLOCKING SEMANTICS
=============================================================================

    read()    blocks until ≥1 byte is available or the peer closes
              (0 bytes read == EOF)
    write()   blocks until the kernel accepts at least one byte
    accept()  blocks until a connection is pending

If a system call is interrupted by a signal, the interpreter retries it
automatically (PEP 475) unless the signal handler raises.

=============================================================================
"""

import logging
import socket
from abc import ABC, abstractmethod
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


class Stream(ABC):
    """
    Byte stream interface used by everything above the socket layer.
    """

    @abstractmethod
    def read(self, buffer: bytearray) -> int:
        """Read into buffer, return bytes read (0 means EOF)."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write some of data, return bytes accepted."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying resource."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once close() has been called."""

    def write_all(self, data: bytes) -> int:
        """
        Write every byte of data.

        write() may accept fewer bytes than offered when the kernel send
        buffer is full, so we loop until everything has been taken.

        Returns:
            Total number of bytes written (always len(data)).
        """
        view = memoryview(data)
        total = 0
        while total < len(view):
            total += self.write(view[total:])
        return total

    def set_timeout(self, timeout: Optional[float]) -> None:
        """Bound blocking operations. Streams that never block ignore it."""


class SocketHandle(Stream):
    """
    A blocking TCP socket: either the listening socket or one accepted
    connection.

    Usage:
        handle = SocketHandle(socket.socket(socket.AF_INET, socket.SOCK_STREAM))
        conn, address = listener.accept()
        n = conn.read(buf)
        conn.write_all(b"HTTP/1.0 200 OK\\r\\n...")
        conn.close()
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._fileno = sock.fileno()
        self._closed = False

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<SocketHandle fd={self._fileno} {state}>"

    @property
    def fileno(self) -> int:
        """The OS descriptor this handle wraps (stays valid for logging after close)."""
        return self._fileno

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def raw_socket(self) -> socket.socket:
        """The wrapped socket object."""
        return self._sock

    def local_address(self) -> Tuple[str, int]:
        """Address the socket is bound to (useful when binding port 0)."""
        return self._sock.getsockname()[:2]

    def set_timeout(self, timeout: Optional[float]) -> None:
        """
        Apply a per-operation timeout. None restores fully blocking mode.

        Off by default; the server applies ServerConfig.timeout to accepted
        connections so a silent client cannot stall the loop forever.
        """
        self._sock.settimeout(timeout)

    # =========================================================================
    # I/O
    # =========================================================================

    def read(self, buffer: bytearray) -> int:
        if not buffer:
            return 0
        return self._sock.recv_into(buffer)

    def write(self, data: bytes) -> int:
        return self._sock.send(data)

    def accept(self) -> Tuple["SocketHandle", Tuple[str, int]]:
        """
        Wait for a client and return a handle for the new stream.

        The listening handle is untouched; accept() hands back a NEW
        descriptor that belongs to the caller and must be closed by it.
        """
        client_sock, address = self._sock.accept()
        # Accepted sockets inherit the listener's timeout; connections
        # start fully blocking.
        client_sock.settimeout(None)
        return SocketHandle(client_sock), address

    def close(self) -> None:
        """
        Release the descriptor.

        A handle is closed at most once: later calls are ignored so a
        cleanup path can never close a descriptor number the OS has
        already handed to someone else.
        """
        if self._closed:
            logger.debug(f"fd={self._fileno} already closed")
            return
        self._closed = True
        self._sock.close()


class MemoryStream(Stream):
    """
    A Stream over an in-memory byte string.

    Reads drain the data; writes are collected in `written`. Used by
    parse_request() and handy in tests.
    """

    def __init__(self, data: bytes = b"", chunk_size: Optional[int] = None):
        self._data = memoryview(bytes(data))
        self._pos = 0
        self._chunk_size = chunk_size
        self._closed = False
        self.written = bytearray()

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, buffer: bytearray) -> int:
        n = len(buffer)
        if self._chunk_size:
            n = min(n, self._chunk_size)
        chunk = self._data[self._pos:self._pos + n]
        buffer[:len(chunk)] = chunk
        self._pos += len(chunk)
        return len(chunk)

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data)

    def close(self) -> None:
        self._closed = True
