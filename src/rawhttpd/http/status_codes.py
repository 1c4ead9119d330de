"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server can emit, with their reason phrases.

    HTTP/1.0 200 OK
             ─── ──
              │   │
              │   └── Reason phrase (from _STATUS_PHRASES)
              └────── Status code   (HTTPStatus member)

    ┌────────┬──────────────────────────────────────────────────────────┐
    │  2xx   │ 200 OK                - Handler produced a response      │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  4xx   │ 400 Bad Request       - Malformed request line/headers   │
    │        │ 404 Not Found         - No route prefix matched          │
    │        │ 413 Payload Too Large - Content-Length over the cap      │
    │        │ 431 Header Too Large  - A request line/header too long   │
    ├────────┼──────────────────────────────────────────────────────────┤
    │  5xx   │ 500 Internal Error    - A handler raised                 │
    └────────┴──────────────────────────────────────────────────────────┘

HTTPStatus is an IntEnum, so `HTTPStatus.OK == 200` holds and members
format as plain numbers in the status line.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """HTTP status codes used by the server."""

    OK = 200

    BAD_REQUEST = 400
    NOT_FOUND = 404
    PAYLOAD_TOO_LARGE = 413
    REQUEST_HEADER_FIELDS_TOO_LARGE = 431

    INTERNAL_SERVER_ERROR = 500

    def __str__(self) -> str:
        return str(int(self))

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.REQUEST_HEADER_FIELDS_TOO_LARGE: "Request Header Fields Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
