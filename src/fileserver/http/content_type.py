"""
=============================================================================
CONTENT-TYPE CLASSIFICATION
=============================================================================

Decides which MIME type to send with a file.

=============================================================================
SNIFF FIRST, THEN TRUST THE EXTENSION
=============================================================================

A file name is whatever its author chose. "cat.txt" may well be a PNG.
The first bytes of a file are much harder to get wrong, so we look at
those first:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      classify(path) FLOW                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   read first 512 bytes ──► filetype match? ──yes──► sniffed type    │
    │          │                        │                                  │
    │     (open fails)                  no                                 │
    │          │                        │                                  │
    │          └────────────────► extension known? ──yes──► table type    │
    │                                   │                                  │
    │                                   no                                 │
    │                                   │                                  │
    │                                   └──► application/octet-stream      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Text formats (HTML, Markdown, JSON, source code) have no magic bytes, so
they always fall through to the extension table. Empty files too.

=============================================================================
MAGIC BYTES
=============================================================================

Most binary formats start with a fixed signature:

    89 50 4E 47               PNG
    FF D8 FF                  JPEG
    25 50 44 46               PDF   ("%PDF")
    50 4B 03 04               ZIP   (also docx/jar/apk)

Some put it at an offset (TAR has "ustar" at byte 257, MP4 has "ftyp" at
byte 4), and container formats like RIFF carry a sub-type further in
("RIFF....WAVE", "RIFF....WEBP"). The `filetype` package holds the
matchers for all of these; this module only decides how much to read
and what to do when nothing matches.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional, Union

import filetype


logger = logging.getLogger(__name__)


SNIFF_LENGTH = 512
"""How many leading bytes are inspected."""

DEFAULT_MIME_TYPE = "application/octet-stream"


# =============================================================================
# EXTENSION TABLE
# =============================================================================
#
# Maps lowercase extensions (without the dot) to MIME types. Used when
# sniffing finds nothing, which is always the case for text formats.
#
# =============================================================================

EXTENSION_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT
    # -------------------------------------------------------------------------
    "html": "text/html",
    "htm": "text/html",
    "txt": "text/plain",
    "md": "text/markdown",
    "css": "text/css",
    "js": "text/javascript",
    "csv": "text/csv",
    "json": "application/json",
    "xml": "application/xml",
    "svg": "image/svg+xml",

    # -------------------------------------------------------------------------
    # MEDIA
    # -------------------------------------------------------------------------
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "ico": "image/x-icon",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "mp4": "video/mp4",
    "mov": "video/mp4",

    # -------------------------------------------------------------------------
    # DOCUMENTS AND ARCHIVES
    # -------------------------------------------------------------------------
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/gzip",
    "tar": "application/x-tar",

    # -------------------------------------------------------------------------
    # SOURCE AND METADATA, shown inline as plain text
    # -------------------------------------------------------------------------
    "rs": "text/plain",
    "py": "text/plain",
    "toml": "text/plain",
    "yaml": "text/plain",
    "yml": "text/plain",
    "lock": "text/plain",
    "tag": "text/plain",
    "head": "text/plain",
}


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def sniff(head: bytes) -> Optional[str]:
    """
    Match the leading bytes of a file against known signatures.

    Args:
        head: Up to SNIFF_LENGTH leading bytes of the file.

    Returns:
        The detected MIME type, or None.

    Examples:
        >>> sniff(b"\\x89PNG\\r\\n\\x1a\\n....")
        'image/png'
        >>> sniff(b"hello world") is None
        True
    """
    if not head:
        return None
    return filetype.guess_mime(head)


def mime_type_for_extension(path: Union[str, Path]) -> str:
    """
    Look up the MIME type for a file name's extension.

    Extensions are matched case-insensitively. Unknown or missing
    extensions give application/octet-stream.

    Examples:
        >>> mime_type_for_extension("notes.MD")
        'text/markdown'
        >>> mime_type_for_extension("Makefile")
        'application/octet-stream'
    """
    suffix = Path(path).suffix.lower().lstrip(".")
    return EXTENSION_TYPES.get(suffix, DEFAULT_MIME_TYPE)


def read_head(path: Union[str, Path], length: int = SNIFF_LENGTH) -> bytes:
    """
    Read up to `length` leading bytes of a file.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    with open(path, "rb") as f:
        return f.read(length)


def classify(path: Union[str, Path]) -> str:
    """
    Determine the MIME type of a file.

    Content sniffing wins over the extension. A file that cannot be
    opened for sniffing is classified by its extension alone; that is
    not an error for the request.

    Args:
        path: Absolute path of a regular file.

    Returns:
        A MIME type such as "image/png". Never empty.
    """
    try:
        head = read_head(path)
    except OSError as e:
        logger.debug(f"Cannot sniff {path}: {e}")
        head = b""

    mime_type = sniff(head)
    if mime_type:
        return mime_type

    return mime_type_for_extension(path)
