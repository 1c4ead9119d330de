"""
HTTP protocol layer: request parsing, prefix routing, responses.

    HTTPRequest / RequestParser   - bytes on a Connection → request object
    Headers                       - case-insensitive multi-valued headers
    RouteTable                    - longest-prefix dispatch
    HTTPResponse / ResponseBuilder - response object → bytes
    ResponseWriter                - logged writes to a Connection
"""

from .headers import Headers, canonical_key
from .status_codes import HTTPStatus
from .request import HTTPRequest, RequestParser, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok_html,
    not_found,
    error_response,
    bad_request,
    payload_too_large,
    internal_error,
    format_http_date,
)
from .router import RouteTable, RouteMatch, Handler
from .writer import ResponseWriter

__all__ = [
    "Headers",
    "canonical_key",
    "HTTPStatus",
    "HTTPRequest",
    "RequestParser",
    "parse_request",
    "HTTPResponse",
    "ResponseBuilder",
    "ok_html",
    "not_found",
    "error_response",
    "bad_request",
    "payload_too_large",
    "internal_error",
    "format_http_date",
    "RouteTable",
    "RouteMatch",
    "Handler",
    "ResponseWriter",
]
