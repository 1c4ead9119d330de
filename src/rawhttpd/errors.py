"""
=============================================================================
ERROR TAXONOMY
=============================================================================

Every failure the server can hit falls into one of four buckets. What
matters is not the exception class itself but WHO is allowed to die
because of it:

    ┌───────────────────┬──────────────────────────┬──────────────────────┐
    │  Exception        │  Raised when             │  Blast radius        │
    ├───────────────────┼──────────────────────────┼──────────────────────┤
    │  SetupError       │  socket/bind/listen fail │  whole process       │
    │  ParseError       │  malformed request bytes │  one connection      │
    │  RouteError       │  no prefix matches URI   │  one connection      │
    │  WriteError       │  peer went away mid-send │  one connection      │
    └───────────────────┴──────────────────────────┴──────────────────────┘

Only SetupError may terminate the process. Everything else is caught by
the server loop, logged, and the loop goes back to accept().

=============================================================================
INTERVIEW QUESTIONS ABOUT ERROR HANDLING
=============================================================================

Q: "Why carry a status code on the parse exception?"
A: "The code that detects the problem knows best what went wrong
   (bad syntax vs. body too large). The server loop just reads
   e.status_code and sends the matching response."

Q: "Why not crash on a bad request?"
A: "One misbehaving client must never take the server down for
   everyone else. Per-connection errors are isolated."

=============================================================================
"""

from typing import Optional


class ServerError(Exception):
    """Base class for all errors raised by rawhttpd."""


class SetupError(ServerError):
    """
    Raised when the listening socket cannot be created.

    Carries the name of the failed step ("socket", "setsockopt", "bind"
    or "listen") so the operator knows where startup stopped.
    """

    def __init__(self, step: str, message: str):
        super().__init__(f"{step}: {message}")
        self.step = step


class ParseError(ServerError):
    """
    Raised when request bytes cannot be parsed.

    The status code is the HTTP status the server should answer with
    (None means: send nothing, just drop the connection).
    """

    def __init__(self, message: str, status_code: Optional[int] = 400):
        super().__init__(message)
        self.status_code = status_code


class EmptyRequestError(ParseError):
    """The peer closed the connection before sending a request line."""

    def __init__(self, message: str = "connection closed before request line"):
        super().__init__(message, status_code=None)


class BodyTooLargeError(ParseError):
    """Declared Content-Length exceeds the configured body cap."""

    def __init__(self, length: int, limit: int):
        super().__init__(
            f"Request body too large: {length} bytes (limit {limit})",
            status_code=413,
        )
        self.length = length
        self.limit = limit


class RouteError(ServerError):
    """No registered prefix matches the request URI."""

    def __init__(self, uri: str):
        super().__init__(f"no handler for path: {uri}")
        self.uri = uri


class WriteError(ServerError):
    """Writing the response failed (usually the peer closed early)."""
