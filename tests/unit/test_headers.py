"""
Unit tests for the case-insensitive header map.
"""

import pytest

from rawhttpd.http.headers import Headers, canonical_key


class TestCanonicalKey:

    @pytest.mark.parametrize("name,expected", [
        ("content-type", "Content-Type"),
        ("CONTENT-TYPE", "Content-Type"),
        ("x-forwarded-for", "X-Forwarded-For"),
        ("host", "Host"),
        ("www-authenticate", "Www-Authenticate"),
    ])
    def test_canonicalizes(self, name, expected):
        assert canonical_key(name) == expected

    def test_invalid_names_left_alone(self):
        assert canonical_key("bad name") == "bad name"
        assert canonical_key("") == ""


class TestHeaders:
    """Tests for Headers."""

    def test_case_insensitive_get(self):
        headers = Headers([("content-type", "text/html")])

        assert headers.get("Content-Type") == "text/html"
        assert headers.get("CONTENT-TYPE") == "text/html"
        assert headers["content-type"] == "text/html"
        assert "Content-type" in headers

    def test_values_keep_case(self):
        headers = Headers([("X-Token", "AbC")])
        assert headers.get("x-token") == "AbC"

    def test_multiple_values(self):
        headers = Headers()
        headers.add("Accept", "text/html")
        headers.add("accept", "text/plain")

        assert headers.get("Accept") == "text/html"
        assert headers.get_all("ACCEPT") == ["text/html", "text/plain"]
        assert len(headers) == 1

    def test_set_replaces(self):
        headers = Headers([("Accept", "a"), ("Accept", "b")])
        headers.set("accept", "c")

        assert headers.get_all("Accept") == ["c"]

    def test_missing(self):
        headers = Headers()

        assert headers.get("Missing") is None
        assert headers.get("Missing", "x") == "x"
        assert headers.get_all("Missing") == []
        assert "Missing" not in headers
        with pytest.raises(KeyError):
            headers["Missing"]

    def test_extend_last(self):
        headers = Headers([("X-Long", "a"), ("X-Long", "b")])
        headers.extend_last("x-long", "continued")

        assert headers.get_all("X-Long") == ["a", "b continued"]

    def test_items_are_copies(self):
        headers = Headers([("Host", "example")])
        for _, values in headers.items():
            values.append("mutated")

        assert headers.get_all("Host") == ["example"]

    def test_equality(self):
        assert Headers([("host", "a")]) == Headers([("HOST", "a")])
        assert Headers([("host", "a")]) != Headers([("host", "b")])
