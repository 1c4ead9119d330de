"""
=============================================================================
HTTP HEADERS
=============================================================================

A case-insensitive, multi-valued header map.

HTTP header NAMES are case-insensitive (RFC 7230 §3.2), header VALUES
are not. Clients also may repeat a header:

    Accept: text/html\r\n
    accept: application/json\r\n

Both lines belong to the same field, in order. So the map is:

    canonical name  →  ordered list of values

    ┌───────────────────────┬──────────────────────────────────────────┐
    │  Key (canonical)      │  Values                                  │
    ├───────────────────────┼──────────────────────────────────────────┤
    │  "Accept"             │  ["text/html", "application/json"]       │
    │  "Content-Type"        │  ["text/plain; charset=UTF-8"]           │
    └───────────────────────┴──────────────────────────────────────────┘

Names are canonicalized MIME-style on the way in: first letter and
every letter after a hyphen upper-cased, the rest lower-cased.
"content-type", "CONTENT-TYPE" and "Content-Type" all become
"Content-Type". Values are stored exactly as received.

=============================================================================
"""

from typing import Dict, Iterator, List, Optional, Tuple


# Characters allowed in a header name (RFC 7230 "token").
_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~"
    "0123456789"
    "abcdefghijklmnopqrstuvwxyz"
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


def canonical_key(name: str) -> str:
    """
    Return the canonical form of a header name.

    Names containing characters outside the token set are returned
    unchanged, so odd input is never silently merged with a valid key.

    Example:
        canonical_key("x-forwarded-for")  →  "X-Forwarded-For"
    """
    if not name or any(ch not in _TOKEN_CHARS for ch in name):
        return name

    out = []
    upper = True
    for ch in name:
        out.append(ch.upper() if upper else ch.lower())
        upper = ch == "-"
    return "".join(out)


class Headers:
    """
    Case-insensitive mapping of header name → list of values.

    Usage:
        headers = Headers()
        headers.add("content-type", "text/html")
        headers.get("Content-Type")       # "text/html"
        headers.get_all("CONTENT-TYPE")   # ["text/html"]
    """

    def __init__(self, pairs: Optional[List[Tuple[str, str]]] = None):
        self._values: Dict[str, List[str]] = {}
        for name, value in pairs or []:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        """Append a value to a header, keeping earlier values."""
        self._values.setdefault(canonical_key(name), []).append(value)

    def set(self, name: str, value: str) -> None:
        """Replace every value of a header with a single one."""
        self._values[canonical_key(name)] = [value]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """First value of a header, or default."""
        values = self._values.get(canonical_key(name))
        return values[0] if values else default

    def get_all(self, name: str) -> List[str]:
        """All values of a header in arrival order (empty list if absent)."""
        return list(self._values.get(canonical_key(name), []))

    def extend_last(self, name: str, continuation: str) -> None:
        """Append folded continuation text to the most recent value of name."""
        values = self._values[canonical_key(name)]
        values[-1] = f"{values[-1]} {continuation}" if values[-1] else continuation

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name, values in self._values.items():
            yield name, list(values)

    def __getitem__(self, name: str) -> str:
        values = self._values.get(canonical_key(name))
        if not values:
            raise KeyError(name)
        return values[0]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_key(name) in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Headers({self._values!r})"
