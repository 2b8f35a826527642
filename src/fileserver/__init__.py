"""
=============================================================================
PyFileServer
=============================================================================

A minimal HTTP file server built directly on sockets.

It exposes one directory (the Server Root) to clients:

    GET /            → HTML listing of the root
    GET /img         → HTML listing of ./img
    GET /img/cat.png → the file, with a sniffed Content-Type
    GET /../secret   → 403 "Backtracking not allowed."

Quick start:

    $ fileserver ./public --port 7878

or from Python:

    from fileserver import FileServer, ServerConfig

    FileServer(ServerConfig(root_dir="./public")).run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer
from .config import ServerConfig

__all__ = ["FileServer", "ServerConfig", "__version__"]
