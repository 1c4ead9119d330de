"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Handlers return an HTTPResponse; the server loop serializes and writes
it. Handlers never touch the socket.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  STATUS LINE      HTTP/1.0 200 OK\r\n                                │
    │                   ────┬─── ─┬─ ─┬─                                   │
    │                   Version  Code Phrase                               │
    │                                                                      │
    │  HEADERS          Content-Type: text/html; charset=utf-8\r\n         │
    │                   Content-Length: 20\r\n      ← always len(body)     │
    │                   Server: rawhttpd/1.0\r\n                           │
    │                   Date: Sun, 18 Oct 2026 12:00:00 GMT\r\n            │
    │                                                                      │
    │  BLANK LINE       \r\n                                               │
    │                                                                      │
    │  BODY             <h1>Hello world</h1>                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY RETURN A RESPONSE OBJECT INSTEAD OF WRITING?
=============================================================================

    Handler returns          to_bytes()              Writer sends
    HTTPResponse    ─────►   serializes    ─────►    raw bytes

- Handlers are testable without sockets: call, inspect the object.
- Content-Length is computed in ONE place, so it can't drift from the
  body a handler actually produced.
- The loop can still adjust the response (e.g. drop the body for HEAD).

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus


DEFAULT_SERVER_NAME = "rawhttpd/1.0"


@dataclass
class HTTPResponse:
    """
    An HTTP response waiting to be serialized.

        status:   HTTPStatus code
        headers:  Header name → value, emitted in insertion order
        body:     Body bytes
        version:  Protocol string for the status line
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.0"

    def __post_init__(self):
        # Plain ints are accepted; unknown codes raise ValueError here
        self.status = HTTPStatus(self.status)

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.0 200 OK"."""
        return f"{self.version} {self.status} {self.status.phrase}"

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME, include_body: bool = True) -> bytes:
        """
        Serialize to wire format.

        Content-Length is always the exact length of `body`, even when
        include_body is False (HEAD responses advertise the length of the
        body they leave out).

        Args:
            server_name: Value for the Server header when none is set.
            include_body: False to emit the head only.
        """
        response_headers = dict(self.headers)
        response_headers["Content-Length"] = str(len(self.body))
        response_headers.setdefault("Server", server_name)
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return head + self.body if include_body else head


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .html("<h1>Hello world</h1>")
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = HTTPStatus(status)
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set a raw body. Strings are encoded as UTF-8."""
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        self._body = text.encode("utf-8")
        return self.content_type("text/plain; charset=utf-8")

    def html(self, html: str) -> "ResponseBuilder":
        self._body = html.encode("utf-8")
        return self.content_type("text/html; charset=utf-8")

    def close_connection(self) -> "ResponseBuilder":
        """Add Connection: close (every error response carries it)."""
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Sun, 18 Oct 2026 12:00:00 GMT

    HTTP dates are always GMT; pass a UTC datetime.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok_html(html: str) -> HTTPResponse:
    """200 OK with an HTML body."""
    return ResponseBuilder().status(HTTPStatus.OK).html(html).build()


def not_found() -> HTTPResponse:
    """404 with an empty body and Connection: close."""
    return (ResponseBuilder()
        .status(HTTPStatus.NOT_FOUND)
        .content_type("text/plain; charset=utf-8")
        .close_connection()
        .build())


def error_response(status: HTTPStatus, message: str = "") -> HTTPResponse:
    """
    Plain-text error response with Connection: close.

    The body is the reason phrase unless a message is given.
    """
    status = HTTPStatus(status)
    return (ResponseBuilder()
        .status(status)
        .text(message or status.phrase)
        .close_connection()
        .build())


def bad_request(message: str = "Bad Request") -> HTTPResponse:
    return error_response(HTTPStatus.BAD_REQUEST, message)


def payload_too_large(message: str = "Payload Too Large") -> HTTPResponse:
    return error_response(HTTPStatus.PAYLOAD_TOO_LARGE, message)


def internal_error() -> HTTPResponse:
    """500 response. Never echoes exception details to the client."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)
