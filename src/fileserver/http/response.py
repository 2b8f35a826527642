"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds the HTTP/1.1 responses the file server writes back on a connection.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                    ← status line              │
    │   Content-Type: image/png\r\n            ← only when there is a body│
    │   Content-Length: 5120\r\n               ← always (auto-added)      │
    │   Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                           │
    │   Server: PyFileServer/1.0\r\n                                      │
    │   Connection: close\r\n                  ← one request per conn.    │
    │   \r\n                                   ← end of headers           │
    │   <file bytes or listing HTML>           ← body                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every response is built once, serialized with to_bytes(), written with a
single sendall(), and then the connection is closed. There is no
chunked encoding, so Content-Length is what tells the client where the
body ends.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Union

from .status_codes import HTTPStatus


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    A plain data container. Use ResponseBuilder or the convenience
    functions at the bottom of this module to construct one.

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 403 Forbidden"
        """
        return f"{self.version} {self.status} {self.status.phrase}"

    @property
    def content_type(self) -> str:
        """Content-Type header value, or "" when none was set."""
        return self.headers.get("Content-Type", "")

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = "PyFileServer/1.0") -> bytes:
        """
        Serialize the response to bytes for sending over the socket.

        Content-Length, Date and Server are filled in when the handler
        did not set them.

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response, ready for socket.sendall().
        """
        # Copy headers to avoid modifying original
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")

        # Empty line separates headers from body
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

    Each method returns `self`, so a response reads top to bottom:

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .content_type("image/png")
            .body(data)
            .close_connection()
            .build())
    """

    def __init__(self, server_name: str = "PyFileServer/1.0"):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._server_name = server_name

    # =========================================================================
    # STATUS AND HEADERS
    # =========================================================================

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def close_connection(self) -> "ResponseBuilder":
        """
        Set Connection: close.

        The server never keeps a connection open after one response;
        saying so lets the client stop waiting as soon as the body ends.
        """
        return self.header("Connection", "close")

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body (raw bytes or string).

        Strings are encoded to UTF-8. Content-Type is left to the caller.
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Set a plain text body with a matching Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def html(self, html: str) -> "ResponseBuilder":
        """Set an HTML body with Content-Type text/html; charset=utf-8."""
        self._body = html.encode("utf-8")
        self._headers["Content-Type"] = "text/html; charset=utf-8"
        return self

    # =========================================================================
    # BUILD
    # =========================================================================

    def build(self) -> HTTPResponse:
        """Build and return the HTTPResponse object."""
        return HTTPResponse(
            status=self._status,
            headers=self._headers,
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        """Build and serialize the response in one step."""
        return self.build().to_bytes(self._server_name)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always in GMT (UTC), never local time.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One-liners for the fixed responses of the file server. Error bodies are
# short plain-text sentences; an empty message means an empty body and no
# Content-Type header at all.
#
#     return forbidden("Backtracking not allowed.")
#     return not_found()
#
# =============================================================================

def _error(status: HTTPStatus, message: str) -> HTTPResponse:
    builder = ResponseBuilder().status(status).close_connection()
    if message:
        builder.text(message)
    return builder.build()


def ok_html(html: str) -> HTTPResponse:
    """Create a 200 OK response carrying an HTML document."""
    return ResponseBuilder().status(HTTPStatus.OK).html(html).close_connection().build()


def ok_file(content: bytes, content_type: str) -> HTTPResponse:
    """Create a 200 OK response carrying raw file bytes."""
    return (ResponseBuilder()
        .status(HTTPStatus.OK)
        .content_type(content_type)
        .body(content)
        .close_connection()
        .build())


def forbidden(message: str = "Forbidden.") -> HTTPResponse:
    """Create a 403 Forbidden response."""
    return _error(HTTPStatus.FORBIDDEN, message)


def not_found(message: str = "") -> HTTPResponse:
    """
    Create a 404 Not Found response.

    The default is an empty body, which is what favicon requests get.
    """
    return _error(HTTPStatus.NOT_FOUND, message)


def payload_too_large(message: str = "File too large.") -> HTTPResponse:
    """Create a 413 Payload Too Large response."""
    return _error(HTTPStatus.PAYLOAD_TOO_LARGE, message)


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    """
    Create a 500 Internal Server Error response.

    Keep the message generic; details belong in the server log.
    """
    return _error(HTTPStatus.INTERNAL_SERVER_ERROR, message)


def service_unavailable(message: str = "Server busy.") -> HTTPResponse:
    """Create a 503 Service Unavailable response."""
    return _error(HTTPStatus.SERVICE_UNAVAILABLE, message)
