"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Reads exactly one HTTP/1.0 request from a Connection and turns it into
an HTTPRequest.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP REQUEST STRUCTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  REQUEST LINE     POST /echo?x=1 HTTP/1.0\r\n                        │
    │                   ─┬── ────┬──── ───┬────                           │
    │                  Method   URI     Version                            │
    │                                                                      │
    │  HEADERS          Content-Type: text/plain\r\n                       │
    │                   Content-Length: 5\r\n                              │
    │                   X-Folded: first part\r\n                           │
    │                      second part\r\n     ← continuation line          │
    │                                                                      │
    │  BLANK LINE       \r\n                                               │
    │                                                                      │
    │  BODY             hello                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PARSING ALGORITHM
=============================================================================

    1. read_line()  → split on whitespace → exactly 3 tokens
    2. read_line() until blank → "Name: value" pairs, folding lines that
       start with a space or tab into the previous value
    3. body:
         GET / HEAD                  → b""
         Content-Length: N           → read exactly N bytes
                                       (N > max_body_size → 413)
         no Content-Length           → one read of up to max_body_size;
                                       anything past that is dropped

=============================================================================
KNOWN LIMITATIONS
=============================================================================

- No chunked transfer encoding. A chunked body is read like any other
  body without Content-Length.
- Without Content-Length the body is whatever a single read returns,
  capped at max_body_size. A client that sends its body in several TCP
  segments may be cut short, and bytes past the cap are silently
  dropped. Send Content-Length to get exact, size-checked bodies.

=============================================================================
INTERVIEW QUESTIONS ABOUT REQUEST PARSING
=============================================================================

Q: "How do you know where the body ends?"
A: "Content-Length. HTTP/1.0 without it means 'until the client
   closes', which a server that answers before the client closes
   can't wait for, so we take one read and cap it."

Q: "Why limit the body size?"
A: "Memory. Without a limit one client can make the server allocate
   whatever it claims in Content-Length."

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

from ..core.connection import Connection
from ..core.socket_handle import MemoryStream
from ..errors import BodyTooLargeError, EmptyRequestError, ParseError
from .headers import Headers


logger = logging.getLogger(__name__)


# Methods that never carry a body
BODYLESS_METHODS = frozenset({"GET", "HEAD"})

DEFAULT_MAX_BODY_SIZE = 1024
DEFAULT_MAX_LINE_SIZE = 8192

# Content-Length is 1*DIGIT: no sign, no underscores, no padding
CONTENT_LENGTH_RE = re.compile(r"[0-9]+")


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

        method:          Request method token ("GET", "POST", ...)
        uri:             The raw request target, query and fragment included
        version:         Protocol string from the request line ("HTTP/1.0")
        headers:         Case-insensitive Headers (values keep their case)
        body:            Raw body bytes, empty for GET/HEAD
        client_address:  (ip, port) of the peer, for logging
    """

    method: str
    uri: str
    version: str = "HTTP/1.0"
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    client_address: tuple = ("", 0)

    @property
    def path(self) -> str:
        """The URI without query string or fragment."""
        return urlsplit(self.uri).path or "/"

    @property
    def query(self) -> Dict[str, List[str]]:
        """Query parameters: "?a=1&a=2" → {"a": ["1", "2"]}."""
        return parse_qs(urlsplit(self.uri).query, keep_blank_values=True)

    @property
    def content_length(self) -> Optional[int]:
        """Declared Content-Length, or None when absent or not a number."""
        value = self.headers.get("Content-Length")
        if value is None or not CONTENT_LENGTH_RE.fullmatch(value):
            return None
        return int(value)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("Content-Type")

    def get_header(self, name: str, default: str = "") -> str:
        """First value of a header (case-insensitive lookup)."""
        return self.headers.get(name, default)


class RequestParser:
    """
    Parses one request from a Connection.

    Args:
        max_body_size: Largest body accepted. Declared Content-Length
                       beyond this raises BodyTooLargeError; undeclared
                       bodies are truncated to it.
        max_line_size: Longest request line or header line accepted.
    """

    def __init__(
        self,
        max_body_size: int = DEFAULT_MAX_BODY_SIZE,
        max_line_size: int = DEFAULT_MAX_LINE_SIZE,
    ):
        self.max_body_size = max_body_size
        self.max_line_size = max_line_size

    def parse(self, conn: Connection) -> HTTPRequest:
        """
        Read and parse exactly one request.

        Raises:
            EmptyRequestError: Peer closed before sending anything.
            BodyTooLargeError: Content-Length above max_body_size.
            ParseError: Any other malformed or truncated input.
            OSError: Whatever the underlying stream raised.
        """
        # =====================================================================
        # STEP 1: Request line
        # =====================================================================
        line = conn.read_line(self.max_line_size)
        if line is None:
            raise EmptyRequestError()

        method, uri, version = self._parse_request_line(line)
        logger.debug(f"[{conn.id}] parsed request: method={method}, uri={uri}, proto={version}")

        # =====================================================================
        # STEP 2: Headers
        # =====================================================================
        headers = self._parse_headers(conn)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"[{conn.id}] request headers:")
            for name, values in headers.items():
                for value in values:
                    logger.debug(f"[{conn.id}]     {name}: {value}")

        # =====================================================================
        # STEP 3: Body
        # =====================================================================
        body = self._read_body(conn, method, headers)
        if body:
            logger.debug(f"[{conn.id}] body: {body!r}")

        return HTTPRequest(
            method=method,
            uri=uri,
            version=version,
            headers=headers,
            body=body,
            client_address=conn.address,
        )

    @staticmethod
    def _decode(line: bytes) -> str:
        # Latin-1 maps every byte to one code point, so URIs and header
        # values round-trip byte for byte.
        return line.decode("latin-1")

    def _parse_request_line(self, line: bytes) -> tuple:
        """
        Split "METHOD SP URI SP VERSION" into its three tokens.

        Raises:
            ParseError: Not exactly three whitespace-separated tokens.
        """
        # Split on ASCII whitespace only: 0x85 and 0xA0 are legal URI bytes.
        parts = [self._decode(part) for part in line.split()]
        if len(parts) != 3:
            raise ParseError(f"Malformed request line: {self._decode(line)!r}")
        method, uri, version = parts
        return method, uri, version

    def _parse_headers(self, conn: Connection) -> Headers:
        """
        Read header lines up to the blank line.

        Continuation lines (leading space or tab) are folded into the
        previous header's last value with a single space.
        """
        headers = Headers()
        current: Optional[str] = None

        while True:
            raw = conn.read_line(self.max_line_size)
            if raw is None:
                raise ParseError("Unexpected EOF while reading headers")
            if not raw:
                return headers

            line = self._decode(raw)

            if line[0] in (" ", "\t"):
                if current is None:
                    raise ParseError(f"Continuation line before any header: {line!r}")
                headers.extend_last(current, line.strip())
                continue

            name, sep, value = line.partition(":")
            name = name.strip()
            if not sep or not name:
                raise ParseError(f"Malformed header line: {line!r}")

            headers.add(name, value.strip())
            current = name

    def _read_body(self, conn: Connection, method: str, headers: Headers) -> bytes:
        if method in BODYLESS_METHODS:
            return b""

        values = headers.get_all("Content-Length")
        if not values:
            # One read, capped. Whatever else the client sent is dropped.
            return conn.read_some(self.max_body_size)

        if len(set(values)) > 1:
            raise ParseError(f"Conflicting Content-Length values: {values!r}")
        declared = values[0]
        if not CONTENT_LENGTH_RE.fullmatch(declared):
            raise ParseError(f"Invalid Content-Length: {declared!r}")

        length = int(declared)
        if length > self.max_body_size:
            raise BodyTooLargeError(length, self.max_body_size)

        return conn.read_exact(length)


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

def parse_request(
    data: bytes,
    max_body_size: int = DEFAULT_MAX_BODY_SIZE,
    max_line_size: int = DEFAULT_MAX_LINE_SIZE,
) -> HTTPRequest:
    """
    Parse a request held entirely in memory.

    Same rules as RequestParser.parse() on a live connection.

    Example:
        request = parse_request(b"GET /hello HTTP/1.0\\r\\n\\r\\n")
        request.uri   # "/hello"
    """
    conn = Connection(stream=MemoryStream(data))
    parser = RequestParser(max_body_size=max_body_size, max_line_size=max_line_size)
    return parser.parse(conn)
