"""
=============================================================================
DIRECTORY LISTING
=============================================================================

Renders the HTML page shown for a directory.

=============================================================================
PAGE LAYOUT
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  Currently in /img                                                  │
    │                                                                      │
    │  • Up to previous directory          → href="/"                     │
    │  • cat.png                           → href="/img/cat.png"          │
    │  • holiday photos/                   → href="/img/holiday%20photos" │
    └─────────────────────────────────────────────────────────────────────┘

- The heading shows the path relative to the Server Root. The absolute
  filesystem location never reaches the client.
- Only immediate children are listed; nothing is recursed into.
- Directories get a trailing "/" in their display name.
- Every link is the child's root-relative path, percent-encoded.

=============================================================================
LINK ENCODING
=============================================================================

File names may contain characters that break a URL or an HTML attribute:

    ┌───────────┬──────────────────────────────────────────────────────┐
    │ Character │ Problem if left raw                                  │
    ├───────────┼──────────────────────────────────────────────────────┤
    │  space    │ not allowed in a URL                                 │
    │  "        │ ends the href attribute                              │
    │  #        │ starts a fragment, the rest never reaches the server │
    │  < >      │ markup                                               │
    │  %        │ would be decoded as an escape on the way back        │
    │  controls │ invalid in URLs                                      │
    │  non-ASCII│ sent as UTF-8 bytes, each %XX-encoded                │
    └───────────┴──────────────────────────────────────────────────────┘

Everything else ("/", letters, "?", "&", ...) is kept as-is. Since the
request parser takes the whole target as the path, a literal "?" in a
file name round-trips untouched.

=============================================================================
"""

import html
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .resolver import ResolvedResource


logger = logging.getLogger(__name__)


# Bytes that are %-encoded in listing links: C0 controls, DEL, and the
# characters in the table above. Non-ASCII bytes are always encoded.
UNSAFE_BYTES = frozenset(range(0x20)) | {0x7F} | frozenset(b' "#<>%')


@dataclass
class DirectoryEntry:
    """
    One child of a listed directory.

    Attributes:
        name: File name as stored on disk.
        is_dir: Whether the child is a directory (symlinks followed).
        relative_path: POSIX path of the child relative to the Server Root.
    """

    name: str
    is_dir: bool
    relative_path: str

    @property
    def display_name(self) -> str:
        """Name shown in the listing, with "/" appended for directories."""
        name = printable(self.name)
        return f"{name}/" if self.is_dir else name

    @property
    def href(self) -> str:
        """Percent-encoded, root-relative link target."""
        return encode_link("/" + self.relative_path)


def printable(text: str) -> str:
    """Replace undecodable bytes of an on-disk name with U+FFFD."""
    return text.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


def encode_link(path: str) -> str:
    """
    Percent-encode a URL path over the unsafe byte set.

    Examples:
        >>> encode_link("/a b.txt")
        '/a%20b.txt'
        >>> encode_link('/say "hi" #1.txt')
        '/say%20%22hi%22%20%231.txt'
        >>> encode_link("/café")
        '/caf%C3%A9'
    """
    encoded = []
    for byte in path.encode("utf-8", errors="surrogateescape"):
        if byte >= 0x80 or byte in UNSAFE_BYTES:
            encoded.append(f"%{byte:02X}")
        else:
            encoded.append(chr(byte))
    return "".join(encoded)


def parent_link(request_path: str) -> str:
    """
    Compute the target of the "Up to previous directory" link.

    At the root the link points at the root again. Elsewhere the last
    "/"-delimited segment is dropped; an empty result becomes "/".

    Examples:
        >>> parent_link("/")
        '/'
        >>> parent_link("/img")
        '/'
        >>> parent_link("/img/2024/")
        '/img'
    """
    if request_path == "/":
        return "/"

    trimmed = request_path.rstrip("/")
    parent = trimmed[:trimmed.rfind("/")] if "/" in trimmed else ""
    return parent or "/"


def list_entries(resource: ResolvedResource, sort: bool = True) -> List[DirectoryEntry]:
    """
    Read the immediate children of a directory.

    Entries that fail to stat or to produce a root-relative path are
    skipped and logged. A directory that cannot be read at all yields an
    empty list (also logged).

    Args:
        resource: A resolved directory.
        sort: Sort entries by name. Otherwise keep enumeration order.

    Returns:
        The directory's entries.
    """
    entries: List[DirectoryEntry] = []

    try:
        scanner = os.scandir(resource.path)
    except OSError as e:
        logger.error(f"Error reading directory {resource.display_path}: {e}")
        return entries

    with scanner:
        for dir_entry in scanner:
            try:
                is_dir = dir_entry.is_dir()
                relative = Path(dir_entry.path).relative_to(resource.root)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping directory entry {dir_entry.name!r}: {e}")
                continue

            entries.append(DirectoryEntry(
                name=dir_entry.name,
                is_dir=is_dir,
                relative_path=relative.as_posix(),
            ))

    if sort:
        entries.sort(key=lambda entry: entry.name)

    return entries


def render_listing(
    resource: ResolvedResource,
    request_path: str,
    sort: bool = True,
) -> str:
    """
    Render the HTML listing for a directory.

    Args:
        resource: The resolved directory.
        request_path: Decoded path the client asked for; the parent link
                      is derived from it.
        sort: Sort entries by name.

    Returns:
        A complete HTML document.
    """
    items = [
        f'<li><a href="{html.escape(encode_link(parent_link(request_path)))}">'
        f'Up to previous directory</a></li>'
    ]

    for entry in list_entries(resource, sort=sort):
        items.append(
            f'<li><a href="{html.escape(entry.href)}">'
            f'{html.escape(entry.display_name)}</a></li>'
        )

    heading = html.escape(printable(resource.display_path))
    body = "\n        ".join(items)

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Index of {heading}</title>
</head>
<body>
    <h1>Currently in {heading}</h1>
    <ul>
        {body}
    </ul>
</body>
</html>
"""
