"""
=============================================================================
REQUEST-LINE PARSING
=============================================================================

Extracts the target path from the raw bytes of a request.

=============================================================================
WHAT WE PARSE (AND WHAT WE DON'T)
=============================================================================

A file server that only ever serves GET-style requests needs exactly one
thing from the client: the path.

    ┌─────────────────────────────────────────────────────────────────┐
    │  REQUEST LINE                                  ← parsed          │
    │  ─────────────────────────────────────────────────────────────  │
    │  GET /img/a%20cat.png HTTP/1.1\r\n                              │
    │  └─┘ └──────────────┘ └──────┘                                  │
    │  Method   Target        Version                                  │
    │  (kept, never checked)  (ignored)                                │
    ├─────────────────────────────────────────────────────────────────┤
    │  HEADERS                                       ← ignored         │
    │  Host: localhost:7878\r\n                                       │
    │  \r\n                                                           │
    ├─────────────────────────────────────────────────────────────────┤
    │  BODY                                          ← never read      │
    └─────────────────────────────────────────────────────────────────┘

Anything that does not look like a request line falls back to "/", so a
garbage request gets the root listing rather than an error.

=============================================================================
PERCENT-DECODING
=============================================================================

Browsers percent-encode unsafe characters in URLs:

    /a%20b.txt      → /a b.txt
    /caf%C3%A9      → /café
    /bad%FF         → /bad�     (malformed UTF-8 → U+FFFD)

Decoding never fails: malformed sequences become the Unicode
replacement character, and the resolver later reports such a path as
not found. Note that %2F decodes to "/" and %2E%2E to "..". That is
fine, because containment is checked on the canonical path after
decoding, not by inspecting the text.

=============================================================================
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import unquote


DEFAULT_PATH = "/"


@dataclass
class Request:
    """
    One request, as much of it as the server cares about.

    Created when a connection has been read, discarded once the
    response is written.

    Attributes:
        raw: Bytes received in the single read.
        request_line: First line of the request, lossily decoded.
        method: First token of the request line ("" if absent).
        raw_path: Target exactly as sent, may contain %-escapes.
        path: Percent-decoded target path.
        client_address: (ip, port) of the peer, if known.
    """

    raw: bytes
    request_line: str
    method: str
    raw_path: str
    path: str
    client_address: Optional[Tuple[str, int]] = None

    @property
    def client_ip(self) -> str:
        """Client IP, or "-" when the address is unknown."""
        return self.client_address[0] if self.client_address else "-"


def split_request_line(text: str) -> Tuple[str, str, str]:
    """
    Split the first line of a request into (line, method, raw_path).

    The path is the second whitespace-delimited token. When there are
    no lines, or the first line has fewer than two tokens, the path
    defaults to "/".

    Examples:
        >>> split_request_line("GET /docs HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
        ('GET /docs HTTP/1.1', 'GET', '/docs')
        >>> split_request_line("")
        ('', '', '/')
        >>> split_request_line("GET\\r\\n")
        ('GET', 'GET', '/')
    """
    if not text:
        return "", "", DEFAULT_PATH

    # Only \n ends a line; a trailing \r belongs to the CRLF pair
    request_line = text.split("\n", 1)[0].rstrip("\r")
    parts = request_line.split()
    method = parts[0] if parts else ""
    raw_path = parts[1] if len(parts) >= 2 else DEFAULT_PATH
    return request_line, method, raw_path


def parse_path(text: str) -> str:
    """Return the raw (still percent-encoded) target path of a request."""
    return split_request_line(text)[2]


def decode_path(raw_path: str) -> str:
    """
    Percent-decode a target path as UTF-8, replacing malformed sequences.

    Examples:
        >>> decode_path("/a%20b.txt")
        '/a b.txt'
        >>> decode_path("/%E2%82%AC")
        '/€'
    """
    return unquote(raw_path, encoding="utf-8", errors="replace")


def parse_request(
    raw: bytes,
    client_address: Optional[Tuple[str, int]] = None,
) -> Request:
    """
    Build a Request from the raw bytes of one read.

    The bytes are decoded lossily (invalid UTF-8 never rejects a request).

    Args:
        raw: Bytes received from the connection.
        client_address: Peer address, kept for logging.

    Returns:
        The parsed Request.
    """
    text = raw.decode("utf-8", errors="replace")
    request_line, method, raw_path = split_request_line(text)
    return Request(
        raw=raw,
        request_line=request_line,
        method=method,
        raw_path=raw_path,
        path=decode_path(raw_path),
        client_address=client_address,
    )
