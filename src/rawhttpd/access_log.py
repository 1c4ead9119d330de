"""
=============================================================================
ACCESS LOG
=============================================================================

One line per completed request/response exchange, on the
"rawhttpd.access" logger:

    127.0.0.1 - - [18/Oct/2026:12:00:00 +0000] "GET /hello HTTP/1.0" 200 20 0.41ms

or, with log_format="json":

    {"client_ip": "127.0.0.1", "method": "GET", "uri": "/hello", ...}

When writing the response failed, status and length are logged as "-"
(null in JSON): the client never received them.

The logger is namespaced so it can be routed on its own:

    logging.getLogger("rawhttpd.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional


logger = logging.getLogger("rawhttpd.access")


@dataclass
class RequestLog:
    """Structured access log entry."""

    connection_id: str
    client_ip: str
    method: str
    uri: str
    version: str
    status_code: Optional[int]
    content_length: Optional[int]
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        """Apache common log format plus the duration; '-' marks an undelivered response."""
        status = "-" if self.status_code is None else self.status_code
        length = "-" if self.content_length is None else self.content_length
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.uri} {self.version}" {status} '
            f'{length} {self.duration_ms:.2f}ms'
        )


def log_request(
    connection_id: str,
    client_ip: str,
    method: str,
    uri: str,
    version: str,
    status_code: Optional[int],
    content_length: Optional[int],
    duration_ms: float,
    log_format: str = "text",
) -> RequestLog:
    """
    Build a RequestLog, emit it at INFO, and return it.

    Pass status_code and content_length as None when the response never
    reached the client.
    """
    entry = RequestLog(
        connection_id=connection_id,
        client_ip=client_ip,
        method=method,
        uri=uri,
        version=version,
        status_code=None if status_code is None else int(status_code),
        content_length=content_length,
        duration_ms=duration_ms,
        timestamp=datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z"),
    )

    if log_format == "json":
        logger.info(json.dumps(entry.to_dict()))
    else:
        logger.info(entry.to_text())
    return entry
