"""
Request handling: path resolution, directory listings, and the
per-connection pipeline that ties them together.
"""

from .resolver import (
    PathResolver, ResolvedResource, ResourceKind,
    PathRejected, ResourceNotFound, PathTraversalError,
)
from .listing import render_listing, list_entries, DirectoryEntry
from .request_handler import RequestHandler

__all__ = [
    "PathResolver", "ResolvedResource", "ResourceKind",
    "PathRejected", "ResourceNotFound", "PathTraversalError",
    "render_listing", "list_entries", "DirectoryEntry",
    "RequestHandler",
]
