"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes a file server actually sends, with their reason phrases.

    ┌────────────────────────────────────────────────────────────────────┐
    │                  STATUS CODES USED BY THIS SERVER                  │
    ├────────┬───────────────────────────────────────────────────────────┤
    │  200   │ OK: directory listing or file content                     │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  403   │ Forbidden: path escapes the Server Root, or the file      │
    │        │ exists but cannot be read                                 │
    │  404   │ Not Found: missing file, broken symlink, favicon request  │
    │  413   │ Payload Too Large: file exceeds the configured size cap   │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  500   │ Internal Server Error: unexpected failure while reading   │
    │  503   │ Service Unavailable: every worker busy, queue full        │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Extends IntEnum, so codes compare and format as integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> f"{HTTPStatus.NOT_FOUND}"
        '404'
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    # 2xx SUCCESS
    OK = 200

    # 4xx CLIENT ERRORS
    FORBIDDEN = 403              # Outside the root, or unreadable
    NOT_FOUND = 404              # Nothing at that path
    PAYLOAD_TOO_LARGE = 413      # File larger than max_file_size

    # 5xx SERVER ERRORS
    INTERNAL_SERVER_ERROR = 500
    SERVICE_UNAVAILABLE = 503    # Worker queue full

    def __str__(self) -> str:
        return str(self.value)

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES.get(self, "Unknown")

    @property
    def is_success(self) -> bool:
        """Check if this is a 2xx (success) status code."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """Check if this is a 4xx (client error) status code."""
        return 400 <= self < 500

    @property
    def is_server_error(self) -> bool:
        """Check if this is a 5xx (server error) status code."""
        return 500 <= self < 600

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.PAYLOAD_TOO_LARGE: "Payload Too Large",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.SERVICE_UNAVAILABLE: "Service Unavailable",
}
