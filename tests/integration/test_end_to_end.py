"""
End-to-end tests: a real server on a loopback port, real client sockets.
"""

import socket
import threading

from rawhttpd import HTTPServer, ServerConfig
from rawhttpd.handlers import default_routes


def parse_raw(raw: bytes):
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = dict(line.split(": ", 1) for line in lines[1:])
    return lines[0], headers, body


class TestEndToEnd:

    def test_hello(self, background_server):
        bg = background_server(1)

        status, headers, body = parse_raw(bg.request(b"GET /hello HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 200 OK"
        assert headers["Content-Length"] == str(len(body)) == "20"
        assert body == b"<h1>Hello world</h1>"

    def test_sequential_requests(self, background_server):
        bg = background_server(3)

        first = parse_raw(bg.request(b"GET /hello HTTP/1.0\r\n\r\n"))
        second = parse_raw(bg.request(b"GET /notfound HTTP/1.0\r\n\r\n"))
        third = parse_raw(bg.request(b"GET /anything/else HTTP/1.0\r\n\r\n"))

        assert first[0] == "HTTP/1.0 200 OK"
        assert second[0] == "HTTP/1.0 404 Not Found"
        assert second[1]["Connection"] == "close"
        assert second[2] == b""
        assert third[2] == b"<h1>Using fallback matcher for path: /anything/else</h1>"

        bg._thread.join(timeout=5)
        assert bg.served == 3
        assert bg.server.connections_handled == 3

    def test_malformed_then_valid(self, background_server):
        bg = background_server(2)

        bad = parse_raw(bg.request(b"this is not http at all\r\n\r\n"))
        good = parse_raw(bg.request(b"GET /hello HTTP/1.0\r\n\r\n"))

        assert bad[0] == "HTTP/1.0 400 Bad Request"
        assert good[0] == "HTTP/1.0 200 OK"

    def test_silent_client_does_not_kill_server(self, background_server):
        bg = background_server(2)

        assert bg.request(b"") == b""
        status, _, _ = parse_raw(bg.request(b"GET /hello HTTP/1.0\r\n\r\n"))

        assert status == "HTTP/1.0 200 OK"

    def test_post_body_sent_in_pieces(self, background_server):
        bg = background_server(1)

        with socket.create_connection(("127.0.0.1", bg.port), timeout=5) as client:
            client.sendall(b"POST /echo HTTP/1.0\r\nContent-")
            client.sendall(b"Length: 5\r\n\r\nhe")
            client.sendall(b"llo")
            raw = client.makefile("rb").read()

        status, _, body = parse_raw(raw)
        assert status == "HTTP/1.0 200 OK"
        assert body == b"<h1>Using fallback matcher for path: /echo</h1>"

    def test_shutdown_wakes_accept(self, config):
        server = HTTPServer(default_routes(), config)
        listener = server.start()
        thread = threading.Thread(target=server.serve, args=(listener,), daemon=True)
        thread.start()

        server.shutdown()
        thread.join(timeout=5)

        assert not thread.is_alive()
        server.close()
