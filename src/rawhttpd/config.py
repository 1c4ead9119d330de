"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the server in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION GROUPS                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   NETWORK     host, port, backlog, buffer_size, timeout             │
    │   LIMITS      max_body_size, max_line_size                          │
    │   LOGGING     log_level, log_format                                 │
    │   IDENTITY    server_name                                           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Configuration comes from code or from the CLI flags. No environment
variables are consulted.

Validation is eager: HTTPServer calls validate() in its constructor, so
a bad value fails at startup rather than on the first request.

=============================================================================
"""

import socket
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

        ServerConfig(host="0.0.0.0", port=8080, max_body_size=64 * 1024)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """IPv4 address to bind. "0.0.0.0" for all interfaces."""

    port: int = 8080
    """Port to listen on. 0 lets the OS choose (handy in tests)."""

    backlog: int = socket.SOMAXCONN
    """Accept queue length; defaults to the OS maximum."""

    buffer_size: int = 4096
    """Bytes requested per read() on a connection."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.
    None = fully blocking: a silent client stalls the server until it
    sends or disconnects. Set a value to bound how long one connection
    can hold the loop.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_body_size: int = 1024
    """
    Largest request body accepted, in bytes.
    A larger declared Content-Length is answered with 413; a body sent
    without Content-Length is truncated to this size.
    """

    max_line_size: int = 8192
    """Longest request line or header line accepted (431 beyond)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """DEBUG shows every parsed header and every byte written."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "rawhttpd/1.0"
    """Value of the Server response header."""

    def validate(self) -> None:
        """
        Check every value, raising ValueError on the first bad one.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 0:
            raise ValueError("backlog must be >= 0")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_body_size < 0:
            raise ValueError("max_body_size must be >= 0")

        if self.max_line_size < 16:
            raise ValueError("max_line_size must be >= 16")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"log_format must be 'text' or 'json', got {self.log_format!r}")
