"""
=============================================================================
SERVER LOOP
=============================================================================

Ties the pieces together: one connection at a time, start to finish.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    HTTP SERVER ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (server loop)  │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐        │
    │    │create_listener│   │RequestParser │    │  RouteTable  │        │
    │    │ (setup)      │    │  (reading)   │    │  (routing)   │        │
    │    └──────┬───────┘    └──────────────┘    └──────┬───────┘        │
    │           ▼                                       ▼                 │
    │    ┌──────────────┐                        ┌──────────────┐        │
    │    │ SocketHandle │◄──── ResponseWriter ◄──│   Handlers   │        │
    │    │ (Connection) │       (writing)        │              │        │
    │    └──────────────┘                        └──────────────┘        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STATE MACHINE
=============================================================================

    IDLE ──► ACCEPTING ──► READING ──► ROUTING ──► WRITING ──┐
                 ▲                                            │
                 └──────────── close connection ◄─────────────┘

    Any per-connection failure jumps straight to "close connection":

    ┌──────────────────┬────────────────────────────────────────────────┐
    │  Failure         │  What the loop does                            │
    ├──────────────────┼────────────────────────────────────────────────┤
    │  EmptyRequest    │  close silently (client connected, sent none)  │
    │  ParseError      │  log, send 400/413/431 best effort, close      │
    │  RouteError      │  log, send 404 (empty body), close             │
    │  handler raises  │  log traceback, send 500, close                │
    │  WriteError/OSErr│  log, close                                    │
    │  SetupError      │  FATAL: propagates out of run()                │
    └──────────────────┴────────────────────────────────────────────────┘

=============================================================================
CONCURRENCY MODEL: NONE
=============================================================================

There is no thread pool and no event loop. Every socket call blocks the
whole process, so one slow client stalls everyone queued behind it.
ServerConfig.timeout bounds that per connection; it does not change the
one-at-a-time model.

=============================================================================
INTERVIEW QUESTIONS ABOUT THIS DESIGN
=============================================================================

Q: "What's the throughput of a sequential server?"
A: "One request per round trip. Fine for a demo, hopeless under load,
   and trivially DoS-able by a client that connects and says nothing."

Q: "How would you make it concurrent without touching the parser?"
A: "Parsing and routing only see a Stream and a Connection. Hand each
   accepted Connection to a worker pool, or implement Stream on top of
   non-blocking sockets with selectors; process_connection stays."

=============================================================================
"""

import logging
import signal
import socket
import threading
import time
from enum import Enum
from typing import Optional, Tuple

from .access_log import log_request
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketHandle, create_listener
from .errors import EmptyRequestError, ParseError, RouteError, WriteError
from .http import (
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    RequestParser,
    ResponseWriter,
    RouteTable,
    error_response,
    internal_error,
    not_found,
)


logger = logging.getLogger(__name__)


# Pause before retrying a failed accept() (EMFILE, ENOBUFS, ...)
ACCEPT_RETRY_DELAY = 0.1


class ServerState(Enum):
    """Where the server loop currently is."""
    IDLE = "idle"
    ACCEPTING = "accepting"
    READING = "reading"
    ROUTING = "routing"
    WRITING = "writing"
    STOPPED = "stopped"


class HTTPServer:
    """
    Sequential HTTP/1.0 server.

    Usage:
        routes = RouteTable()
        routes.register("/hello", hello)
        routes.register("/", fallback)

        server = HTTPServer(routes, ServerConfig(port=8080))
        server.run()       # blocks until Ctrl+C / SIGTERM

    The route table is handed in fully built; the server freezes it
    before the first accept() and only reads it afterwards.
    """

    def __init__(self, routes: RouteTable, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._routes = routes
        self._parser = RequestParser(
            max_body_size=self.config.max_body_size,
            max_line_size=self.config.max_line_size,
        )

        self._listener: Optional[SocketHandle] = None
        self._stopping = threading.Event()
        self._original_handlers: dict = {}

        self.state = ServerState.IDLE
        self.connections_handled = 0

    @property
    def routes(self) -> RouteTable:
        return self._routes

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port when configured with port 0."""
        if self._listener is None:
            return (self.config.host, self.config.port)
        return self._listener.local_address()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> SocketHandle:
        """
        Create the listening socket and freeze the routes.

        Raises:
            SetupError: The listener could not be created. Fatal.
        """
        if self._listener is None:
            self._stopping.clear()
            self._listener = create_listener(
                self.config.host,
                self.config.port,
                backlog=self.config.backlog,
            )
        self._routes.freeze()
        return self._listener

    def run(self) -> None:
        """
        Start the server and serve until interrupted (blocking).

        Raises:
            SetupError: If the listener cannot be created.
        """
        listener = self.start()
        self._setup_signals()
        self._log_banner()

        try:
            self.serve(listener)
        except KeyboardInterrupt:
            logger.info("Received interrupt, shutting down")
        finally:
            self._restore_signals()
            self.close()

    def serve(self, listener, max_connections: Optional[int] = None) -> int:
        """
        The accept loop.

        Args:
            listener: Anything with accept() → (Stream, address).
            max_connections: Return after this many connections.
                             None = serve until shutdown().

        Returns:
            Number of connections processed.
        """
        self._routes.freeze()
        served = 0

        while not self._stopping.is_set() and (max_connections is None or served < max_connections):
            self.state = ServerState.ACCEPTING
            try:
                stream, address = listener.accept()
            except OSError as e:
                if self._stopping.is_set():
                    break
                logger.error(f"Accept error: {e}, retrying in {ACCEPT_RETRY_DELAY}s")
                time.sleep(ACCEPT_RETRY_DELAY)
                continue

            served += 1
            if self.config.timeout is not None:
                stream.set_timeout(self.config.timeout)

            conn = Connection(stream=stream, address=address, buffer_size=self.config.buffer_size)
            logger.debug(f"[{conn.id}] Incoming connection from {address[0]}:{address[1]}")
            self.process_connection(conn)

        self.state = ServerState.IDLE
        return served

    def shutdown(self) -> None:
        """
        Ask the loop to stop after the current connection.

        Wakes a thread blocked in accept() by shutting the listening
        socket down.
        """
        logger.info("Shutting down server...")
        self._stopping.set()
        if self._listener is not None and not self._listener.closed:
            try:
                self._listener.raw_socket.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                logger.debug(f"Listener shutdown: {e}")

    def close(self) -> None:
        """Close the listening socket."""
        self._stopping.set()
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        self.state = ServerState.STOPPED
        logger.info("Server stopped")

    # =========================================================================
    # PER-CONNECTION PROCESSING
    # =========================================================================

    def process_connection(self, conn: Connection) -> Optional[HTTPResponse]:
        """
        Read one request from conn, answer it, close conn.

        Never raises for per-connection failures; they are logged and
        the connection is closed.

        Returns:
            The response sent (or attempted), None if nothing was sent.
        """
        started = time.perf_counter()
        writer = ResponseWriter(conn, self.config.server_name)
        request: Optional[HTTPRequest] = None
        response: Optional[HTTPResponse] = None
        delivered = False

        with conn:
            try:
                # ─────────────────────────────────────────────────────────
                # READ
                # ─────────────────────────────────────────────────────────
                self.state = ServerState.READING
                request = self._parser.parse(conn)

                # ─────────────────────────────────────────────────────────
                # ROUTE + HANDLE
                # ─────────────────────────────────────────────────────────
                self.state = ServerState.ROUTING
                conn.state = ConnectionState.ROUTING
                response = self.handle_request(request)
                response, payload = self._serialize(conn, response, request.method != "HEAD")

                # ─────────────────────────────────────────────────────────
                # WRITE
                # ─────────────────────────────────────────────────────────
                self.state = ServerState.WRITING
                writer.write(payload)
                delivered = True

            except EmptyRequestError as e:
                logger.debug(f"[{conn.id}] {e}")

            except ParseError as e:
                logger.warning(f"[{conn.id}] Parse error: {e}")
                response = error_response(HTTPStatus(e.status_code), str(e))
                delivered = self._send_error(writer, response)

            except WriteError as e:
                logger.warning(str(e))

            except OSError as e:
                logger.warning(f"[{conn.id}] Connection error: {e}")

        self.connections_handled += 1

        if response is not None:
            log_request(
                connection_id=conn.id,
                client_ip=conn.client_ip,
                method=request.method if request else "-",
                uri=request.uri if request else "-",
                version=request.version if request else "-",
                status_code=response.status if delivered else None,
                content_length=len(response.body) if delivered else None,
                duration_ms=(time.perf_counter() - started) * 1000,
                log_format=self.config.log_format,
            )
        return response

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route request and run its handler. No I/O.

        No matching prefix gives a 404 with an empty body; a handler
        exception gives a 500.
        """
        try:
            match = self._routes.resolve(request.uri)
        except RouteError as e:
            logger.warning(str(e))
            return not_found()

        try:
            response = match.handler(request)
            if not isinstance(response, HTTPResponse):
                raise TypeError(f"expected HTTPResponse, got {type(response).__name__}")
            return response
        except Exception as e:
            logger.exception(f"Handler for {match.prefix!r} failed: {e}")
            return internal_error()

    def _serialize(
        self,
        conn: Connection,
        response: HTTPResponse,
        include_body: bool,
    ) -> Tuple[HTTPResponse, bytes]:
        """
        Turn response into wire bytes.

        A response that cannot be serialized (bad header values, a body
        that isn't bytes) is replaced by a 500.
        """
        try:
            return response, response.to_bytes(self.config.server_name, include_body=include_body)
        except Exception as e:
            logger.exception(f"[{conn.id}] Could not serialize response: {e}")
            fallback = internal_error()
            return fallback, fallback.to_bytes(self.config.server_name, include_body=include_body)

    def _send_error(self, writer: ResponseWriter, response: HTTPResponse) -> bool:
        """Best-effort error response; the peer may already be gone."""
        try:
            writer.write_response(response)
            return True
        except WriteError as e:
            logger.debug(str(e))
            return False

    # =========================================================================
    # SIGNALS AND BANNER
    # =========================================================================

    def _setup_signals(self) -> None:
        """
        Turn SIGTERM into the same clean stop as Ctrl+C (SIGINT).

        Signal handlers can only be installed from the main thread; when
        run() is called elsewhere, signals are left alone.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}")
            raise KeyboardInterrupt

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)

    def _restore_signals(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _log_banner(self) -> None:
        host, port = self.address
        logger.info("===============")
        logger.info("Server Started!")
        logger.info("===============")
        logger.info(f"addr: http://{host}:{port}")
        self._routes.log_routes()
