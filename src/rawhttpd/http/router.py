"""
=============================================================================
PREFIX ROUTE TABLE
=============================================================================

Maps path prefixes to handlers and picks the LONGEST prefix that the
request URI starts with.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Request URI: /hello/world                                         │
    │                                                                      │
    │   Registered prefixes (kept in resolution order):                   │
    │   ┌────────────────────────────────────────────────────────────┐   │
    │   │  /notfound    → not_found_handler    (no: not a prefix)    │   │
    │   │  /hello       → hello                ← MATCH (longest)     │   │
    │   │  /            → fallback             (matches, shorter)    │   │
    │   └────────────────────────────────────────────────────────────┘   │
    │                                                                      │
    │   hello(request)                                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DETERMINISTIC RESOLUTION ORDER
=============================================================================

Prefixes are stored sorted by:

    1. length, longest first
    2. then lexicographically

The first prefix in that order that the URI starts with wins. Two
distinct prefixes that BOTH match a URI are both prefixes of it, so the
shorter one is a prefix of the longer; equal-length matches are
therefore the same string and ties cannot actually happen. The sort key
still fixes one total order, so the table always resolves the same way
no matter what order routes were registered in.

Matching is plain string prefix matching: "/hello" also matches
"/helloworld". Register "/hello/" if segment semantics are wanted.

=============================================================================
LIFECYCLE
=============================================================================

    build at startup ──► freeze() ──► read-only while serving

The server freezes the table before accepting the first connection, so
no lock is needed: nothing mutates it while requests are handled.

=============================================================================
INTERVIEW QUESTIONS ABOUT ROUTING
=============================================================================

Q: "What's the complexity of resolve()?"
A: "O(R × P) for R prefixes of length P in the worst case. A trie keyed
   by character or path segment gets that to O(P), but for a handful of
   routes a sorted list is simpler and just as fast."

Q: "Why not iterate a dict and keep the longest?"
A: "Then correctness depends on iteration order, which is an
   implementation detail. Sorting once at registration makes the
   answer a pure function of the table."

=============================================================================
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from ..errors import RouteError
from .request import HTTPRequest
from .response import HTTPResponse


logger = logging.getLogger(__name__)


# A handler takes a parsed request and returns the response to send
Handler = Callable[[HTTPRequest], HTTPResponse]


def _order_key(prefix: str) -> Tuple[int, str]:
    return (-len(prefix), prefix)


@dataclass(frozen=True)
class RouteMatch:
    """The prefix that won and its handler."""
    prefix: str
    handler: Handler


class RouteTable:
    """
    Longest-prefix route table.

    Usage:
        routes = RouteTable()
        routes.register("/hello", hello)

        @routes.route("/")
        def fallback(request):
            ...

        routes.freeze()
        match = routes.resolve("/hello/there")   # RouteMatch("/hello", hello)
    """

    def __init__(self):
        self._handlers: Dict[str, Handler] = {}
        self._order: List[Tuple[int, str]] = []
        self._frozen = False

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, prefix: str, handler: Handler) -> None:
        """
        Register handler under prefix.

        Registering the same prefix again replaces the earlier handler.

        Raises:
            RuntimeError: If the table has been frozen.
        """
        if self._frozen:
            raise RuntimeError(f"Route table is frozen, cannot register {prefix!r}")

        if prefix not in self._handlers:
            bisect.insort(self._order, _order_key(prefix))
        self._handlers[prefix] = handler

    def route(self, prefix: str) -> Callable[[Handler], Handler]:
        """Decorator form of register()."""
        def decorator(handler: Handler) -> Handler:
            self.register(prefix, handler)
            return handler
        return decorator

    def freeze(self) -> None:
        """Make the table read-only."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def resolve(self, uri: str) -> RouteMatch:
        """
        Find the handler for uri.

        Raises:
            RouteError: If no registered prefix matches.
        """
        for _, prefix in self._order:
            if uri.startswith(prefix):
                logger.debug(f"Found handler {prefix} that matched uri: {uri}")
                return RouteMatch(prefix, self._handlers[prefix])
        raise RouteError(uri)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def prefixes(self) -> List[str]:
        """Registered prefixes in resolution order."""
        return [prefix for _, prefix in self._order]

    def log_routes(self) -> None:
        """Log the table at INFO, in resolution order."""
        logger.info("Registered routes:")
        for prefix in self.prefixes():
            handler = self._handlers[prefix]
            name = getattr(handler, "__name__", repr(handler))
            logger.info(f"  {prefix:<24} → {name}")

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._handlers
