"""
=============================================================================
LISTENER FACTORY
=============================================================================

Creates the one socket the server keeps for its whole life: the
listening socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                  LISTENING SOCKET SETUP                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   socket()       Create a TCP/IPv4 endpoint        → fd             │
    │       │                                                              │
    │   setsockopt()   SO_REUSEADDR = 1                                    │
    │       │                                                              │
    │   bind()         Attach fd to IP:PORT                                │
    │       │                                                              │
    │   listen()       Start queueing connections (SOMAXCONN)              │
    │       │                                                              │
    │       ▼                                                              │
    │   SocketHandle   ready for accept()                                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Any step failing raises SetupError naming that step. The half-built
socket is closed first, so a failed startup leaks nothing. There is no
retry: if we can't listen, the process can't do its job.

=============================================================================
INTERVIEW QUESTIONS ABOUT LISTENING SOCKETS
=============================================================================

Q: "Why SO_REUSEADDR?"
A: "After the server exits, the old port sits in TIME_WAIT for up to
   a couple of minutes. Without SO_REUSEADDR a quick restart fails
   with 'Address already in use'."

Q: "What does the backlog do?"
A: "It bounds the kernel queue of completed handshakes waiting for
   accept(). SOMAXCONN asks for the OS maximum."

=============================================================================
"""

import logging
import socket
from typing import Optional

from ..errors import SetupError
from .socket_handle import SocketHandle


logger = logging.getLogger(__name__)


def create_listener(
    host: str,
    port: int,
    backlog: Optional[int] = None,
) -> SocketHandle:
    """
    Create, configure, bind and listen on a TCP socket.

    Args:
        host: IPv4 address to bind (e.g. "127.0.0.1", "0.0.0.0").
        port: Port number; 0 lets the OS pick a free one.
        backlog: Accept queue length. Defaults to socket.SOMAXCONN.

    Returns:
        A listening SocketHandle.

    Raises:
        SetupError: If any of socket/setsockopt/bind/listen fails.
    """
    if backlog is None:
        backlog = socket.SOMAXCONN

    try:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    except OSError as e:
        raise SetupError("socket", str(e)) from e

    try:
        # Allow reuse of recently-used addresses
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as e:
            raise SetupError("setsockopt", str(e)) from e

        try:
            sock.bind((host, port))
        except OSError as e:
            raise SetupError("bind", f"{host}:{port}: {e}") from e

        try:
            sock.listen(backlog)
        except OSError as e:
            raise SetupError("listen", str(e)) from e
    except SetupError as e:
        logger.error(f"Failed to create listener on {host}:{port}: {e}")
        sock.close()
        raise

    handle = SocketHandle(sock)
    bound_host, bound_port = handle.local_address()
    logger.debug(f"Listening socket fd={handle.fileno} on {bound_host}:{bound_port}, backlog={backlog}")
    return handle
