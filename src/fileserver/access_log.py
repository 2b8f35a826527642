"""
=============================================================================
ACCESS LOG
=============================================================================

One structured record per handled request, written to the
"fileserver.access" logger.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (default, Apache-style):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [17/Oct/2026:10:55:36 +0000] "GET /img" 200 812 1.20ms│
    │ ───────────────────────────────────────────────────────────────────│
    │ IP          Timestamp          Method/Path  Status Size Duration   │
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/img",        │
    │  "client_ip": "127.0.0.1", "status_code": 200, ...}                │
    └─────────────────────────────────────────────────────────────────────┘

The logged path is the DECODED request path (control characters and
quotes escaped in the text format). Filesystem locations are
never logged here.

The access logger is namespaced so it can be routed on its own:

    logging.getLogger("fileserver.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass


logger = logging.getLogger("fileserver.access")


def escape_field(value: str) -> str:
    """
    Escape a value for a quoted text-log field.

    Control characters become \\xNN and `"` / `\\` are backslashed, so a
    request path can never break the line or close the quotes early.
    Printable characters, non-ASCII included, are kept as-is.

    Examples:
        >>> escape_field("/a b.txt")
        '/a b.txt'
        >>> escape_field("/x\\nfake")
        '/x\\\\x0afake'
    """
    out = []
    for ch in value:
        code = ord(ch)
        if ch in '"\\':
            out.append("\\" + ch)
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\x{code:02x}")
        else:
            out.append(ch)
    return "".join(out)


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    Attributes:
        request_id: Connection ID, for correlating with other log lines.
        method: Method token as sent ("" if the request line had none).
        path: Decoded request path.
        client_ip: Client's IP address.
        status_code: HTTP response code.
        content_length: Response body size in bytes.
        duration_ms: Time from first byte read to response sent.
        timestamp: When the request was processed.
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format as an Apache-style access line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method or "-"} {escape_field(self.path)}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


def access_timestamp() -> str:
    """Current local time in access-log format."""
    return time.strftime("%d/%b/%Y:%H:%M:%S %z")


def log_request(entry: RequestLog, log_format: str = "text", level: int = logging.INFO):
    """
    Emit one access record.

    Args:
        entry: The record.
        log_format: "text" or "json".
        level: Logging level for the record.
    """
    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())
