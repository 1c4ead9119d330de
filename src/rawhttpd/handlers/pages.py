"""
=============================================================================
BUILT-IN HANDLERS
=============================================================================

The three handlers the server ships with, plus the adapter that turns a
"request → HTML" function into a handler.

    ┌───────────────┬──────────────────────┬───────────────────────────┐
    │  Prefix       │  Handler             │  Response                 │
    ├───────────────┼──────────────────────┼───────────────────────────┤
    │  /hello       │  hello               │  200 <h1>Hello world</h1> │
    │  /notfound    │  not_found_handler   │  404, empty body          │
    │  /            │  fallback            │  200, echoes the URI      │
    └───────────────┴──────────────────────┴───────────────────────────┘

Because "/" is a prefix of every URI, the fallback catches anything the
longer prefixes don't.

=============================================================================
"""

from typing import Callable, Union

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseBuilder, not_found
from ..http.router import Handler, RouteTable
from ..http.status_codes import HTTPStatus


def html_handler(render: Callable[[HTTPRequest], Union[str, bytes]]) -> Handler:
    """
    Wrap a function that renders HTML into a 200 OK handler.

    The wrapper keeps the render function's name so route listings stay
    readable.
    """
    def handler(request: HTTPRequest) -> HTTPResponse:
        html = render(request)
        if isinstance(html, str):
            html = html.encode("utf-8")
        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("text/html; charset=utf-8")
            .body(html)
            .build())

    handler.__name__ = getattr(render, "__name__", "html_handler")
    return handler


@html_handler
def hello(request: HTTPRequest) -> str:
    return "<h1>Hello world</h1>"


@html_handler
def fallback(request: HTTPRequest) -> bytes:
    # The URI was decoded as Latin-1, so encoding it back the same way
    # reproduces the request bytes exactly.
    return (
        b"<h1>Using fallback matcher for path: "
        + request.uri.encode("latin-1")
        + b"</h1>"
    )


def not_found_handler(request: HTTPRequest) -> HTTPResponse:
    return not_found()


def default_routes() -> RouteTable:
    """Build the route table the CLI serves."""
    routes = RouteTable()
    routes.register("/hello", hello)
    routes.register("/notfound", not_found_handler)
    routes.register("/", fallback)
    return routes
