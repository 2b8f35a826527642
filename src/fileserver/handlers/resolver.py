"""
=============================================================================
PATH RESOLVER
=============================================================================

Maps a decoded URL path to a location inside the Server Root, or refuses.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    ATTACK ATTEMPT:
    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /../../etc/passwd HTTP/1.1                                     │
    │                                                                      │
    │  Naively joined onto root /srv/www:                                 │
    │  /srv/www/../../etc/passwd  → /etc/passwd  (SECURITY BREACH!)       │
    └─────────────────────────────────────────────────────────────────────┘

Filtering ".." out of the text does not work. It misses symlinks that
point outside the root, encoded separators (%2F, %2E%2E) that only appear
after decoding, and absolute remainders like "//etc/passwd". The only
reliable check is on the CANONICAL path:

    1. Join the request path onto the root
    2. Canonicalize (follow symlinks, collapse . and ..)
    3. Compare canonical components with the canonical root, pairwise

=============================================================================
PREFIX BY COMPONENTS, NOT BY COUNT OR BY STRING
=============================================================================

    root       = /srv/www          → ("/", "srv", "www")
    candidate  = /srv/www/img      → ("/", "srv", "www", "img")     ✓ inside
    candidate  = /srv/wwx          → ("/", "srv", "wwx")            ✗ sibling
    candidate  = /srv/www-private  → ("/", "srv", "www-private")    ✗ sibling

Counting components alone would accept /srv/wwx (same depth as the
root). Comparing strings would accept /srv/www-private ("/srv/www" is a
string prefix). Comparing the leading components one by one rejects
both.

=============================================================================
"""

import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union


logger = logging.getLogger(__name__)


class ResourceKind(Enum):
    """What a resolved path points at."""
    DIRECTORY = "directory"
    FILE = "file"
    OTHER = "other"        # fifo, socket, device: never served


class PathRejected(Exception):
    """
    Raised when a request path cannot be served.

    Carries the HTTP status the handler should answer with.
    """

    status_code = 404

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class ResourceNotFound(PathRejected):
    """
    The path does not exist or cannot be canonicalized.

    Covers missing files, broken symlinks, symlink loops, permission
    errors while resolving, and paths the OS refuses (embedded NUL).
    """

    status_code = 404


class PathTraversalError(PathRejected):
    """The canonical path lies outside the Server Root."""

    status_code = 403


@dataclass(frozen=True)
class ResolvedResource:
    """
    A filesystem location that passed the containment check.

    Attributes:
        path: Canonical absolute path.
        kind: Directory, regular file, or other.
        root: Canonical Server Root the path was checked against.
    """

    path: Path
    kind: ResourceKind
    root: Path

    @property
    def relative_path(self) -> Path:
        """Path relative to the Server Root ("." for the root itself)."""
        return self.path.relative_to(self.root)

    @property
    def display_path(self) -> str:
        """
        Root-relative form shown to clients, always starting with "/".

        The absolute filesystem location is never shown.
        """
        relative = self.relative_path.as_posix()
        return "/" if relative == "." else "/" + relative

    @property
    def is_dir(self) -> bool:
        return self.kind is ResourceKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is ResourceKind.FILE


def canonicalize(path: Union[str, Path]) -> Path:
    """
    Canonicalize an existing path.

    Raises:
        ResourceNotFound: If the path cannot be resolved.
    """
    try:
        return Path(path).resolve(strict=True)
    except (OSError, RuntimeError, ValueError) as e:
        # OSError: missing / permission; RuntimeError: symlink loop on
        # older interpreters; ValueError: embedded NUL byte
        raise ResourceNotFound(f"Cannot resolve {path}: {e}", str(path)) from e


def is_within(candidate: Path, root: Path) -> bool:
    """
    Check that `root`'s components are a prefix of `candidate`'s.

    Both paths must already be canonical. Equality counts as inside.

    Examples:
        >>> is_within(Path("/srv/www/img"), Path("/srv/www"))
        True
        >>> is_within(Path("/srv/www"), Path("/srv/www"))
        True
        >>> is_within(Path("/srv/wwx"), Path("/srv/www"))
        False
    """
    root_parts = root.parts
    candidate_parts = candidate.parts

    if len(candidate_parts) < len(root_parts):
        return False

    return all(a == b for a, b in zip(root_parts, candidate_parts))


def kind_of(path: Path) -> ResourceKind:
    """Stat a canonical path and classify it."""
    try:
        mode = os.stat(path).st_mode
    except OSError as e:
        raise ResourceNotFound(f"Cannot stat {path}: {e}", str(path)) from e

    if stat.S_ISDIR(mode):
        return ResourceKind.DIRECTORY
    if stat.S_ISREG(mode):
        return ResourceKind.FILE
    return ResourceKind.OTHER


def resolve(decoded_path: str, root: Union[str, Path]) -> ResolvedResource:
    """
    Resolve a decoded request path against the Server Root.

    =====================================================================
    STEPS
    =====================================================================

        "/img/../img/cat.png"
            │  strip ONE leading "/"
            ▼
        "img/../img/cat.png"
            │  join onto root (plain join, no ".." filtering)
            ▼
        /srv/www/img/../img/cat.png
            │  canonicalize          (fails → ResourceNotFound)
            ▼
        /srv/www/img/cat.png
            │  component prefix check (fails → PathTraversalError)
            ▼
        ResolvedResource(path, FILE)

    =====================================================================

    Args:
        decoded_path: Percent-decoded request path, e.g. "/a b.txt".
        root: The Server Root.

    Returns:
        The resolved resource.

    Raises:
        ResourceNotFound: The path does not exist or cannot be resolved.
        PathTraversalError: The path resolves outside the root.
    """
    relative = decoded_path[1:] if decoded_path.startswith("/") else decoded_path

    canonical_root = canonicalize(root)

    # An absolute remainder ("//etc/passwd" → "/etc/passwd") replaces the
    # root here and is caught by the containment check below
    candidate = canonicalize(canonical_root / relative)

    if not is_within(candidate, canonical_root):
        raise PathTraversalError(
            f"Path escapes root: {decoded_path!r}", decoded_path
        )

    return ResolvedResource(
        path=candidate,
        kind=kind_of(candidate),
        root=canonical_root,
    )


class PathResolver:
    """
    Resolver bound to one Server Root.

    Usage:
        resolver = PathResolver("/srv/www")
        resource = resolver.resolve("/img/cat.png")
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def resolve(self, decoded_path: str) -> ResolvedResource:
        """Resolve `decoded_path` against this resolver's root."""
        return resolve(decoded_path, self.root)
