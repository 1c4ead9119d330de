"""
Core networking components.

    SocketHandle     - blocking read/write/accept/close over one OS socket
    Stream           - the interface parsing code depends on
    create_listener  - socket() + setsockopt() + bind() + listen()
    Connection       - buffered line/exact reads over one accepted stream
"""

from .socket_handle import Stream, SocketHandle, MemoryStream
from .listener import create_listener
from .connection import Connection, ConnectionState

__all__ = [
    "Stream",
    "SocketHandle",
    "MemoryStream",
    "create_listener",
    "Connection",
    "ConnectionState",
]
