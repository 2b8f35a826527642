"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

Networking plumbing, independent of what the server serves:

    SocketServer ──accept()──► Connection ──► handler callback
                                   │
                                   └── optionally queued on a ThreadPool

- SocketServer: binds, listens, runs the accept loop, stops on signals.
- Connection: one client socket; single bounded read, sendall, close.
- ThreadPool: fixed set of worker threads fed from a bounded queue.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
