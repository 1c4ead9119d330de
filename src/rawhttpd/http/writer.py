"""
Response writer: the only code path that puts response bytes on a
connection.

Every write is logged at DEBUG ("writing: ...") so the exact bytes sent
can be seen while debugging. The log line is a diagnostic side effect
and not part of the protocol.
"""

import logging

from ..core.connection import Connection
from ..errors import WriteError
from .response import DEFAULT_SERVER_NAME, HTTPResponse


logger = logging.getLogger(__name__)


class ResponseWriter:
    """Writes to one connection, logging each write."""

    def __init__(self, conn: Connection, server_name: str = DEFAULT_SERVER_NAME):
        self.conn = conn
        self.server_name = server_name

    def write(self, data: bytes) -> int:
        """
        Send data in full.

        Raises:
            WriteError: The connection failed (peer reset, broken pipe,
                        timeout).
        """
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"[{self.conn.id}] writing: {data.decode('latin-1')}")
        try:
            return self.conn.send(data)
        except OSError as e:
            raise WriteError(f"[{self.conn.id}] write failed: {e}") from e

    def write_response(self, response: HTTPResponse, include_body: bool = True) -> int:
        """Serialize response and write it."""
        return self.write(response.to_bytes(self.server_name, include_body=include_body))
