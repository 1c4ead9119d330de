"""
=============================================================================
RAWHTTPD - Minimal Sequential HTTP/1.0 Server on Raw Sockets
=============================================================================

A small HTTP server built directly on blocking sockets: one listening
socket, one connection at a time, one request per connection, handlers
chosen by longest path prefix.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    rawhttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m rawhttpd)
    ├── server.py            # HTTPServer: the accept/serve loop
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # SetupError, ParseError, RouteError, WriteError
    ├── access_log.py        # One log line per request
    ├── core/                # Socket layer
    │   ├── socket_handle.py # Stream, SocketHandle, MemoryStream
    │   ├── listener.py      # create_listener()
    │   └── connection.py    # Buffered reads over one stream
    ├── http/                # Protocol layer
    │   ├── headers.py       # Case-insensitive multi-valued headers
    │   ├── request.py       # HTTPRequest, RequestParser
    │   ├── response.py      # HTTPResponse, ResponseBuilder
    │   ├── router.py        # Longest-prefix RouteTable
    │   ├── status_codes.py  # HTTPStatus
    │   └── writer.py        # ResponseWriter
    └── handlers/
        └── pages.py         # /hello, /notfound, / fallback

=============================================================================
QUICK START
=============================================================================

    from rawhttpd import HTTPServer, ServerConfig, RouteTable
    from rawhttpd.handlers import html_handler

    routes = RouteTable()

    @routes.route("/hello")
    @html_handler
    def hello(request):
        return "<h1>Hello world</h1>"

    HTTPServer(routes, ServerConfig(port=8080)).run()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import (
    ServerError,
    SetupError,
    ParseError,
    EmptyRequestError,
    BodyTooLargeError,
    RouteError,
    WriteError,
)
from .http import HTTPRequest, HTTPResponse, HTTPStatus, RouteTable
from .server import HTTPServer, ServerState

__all__ = [
    "HTTPServer",
    "ServerState",
    "ServerConfig",
    "RouteTable",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "ServerError",
    "SetupError",
    "ParseError",
    "EmptyRequestError",
    "BodyTooLargeError",
    "RouteError",
    "WriteError",
    "__version__",
]
