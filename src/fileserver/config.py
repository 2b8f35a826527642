"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the file server.

=============================================================================
WHY A CONFIG CLASS?
=============================================================================

The Server Root and the bind address are the only values every part of
the server needs. Instead of module-level globals, they live in one
dataclass that is built once at startup and passed by parameter into
every component:

    ServerConfig ──► FileServer ──► SocketServer   (host, port, timeouts)
                                └─► RequestHandler (root_dir, buffer_size)
                                        └─► PathResolver (root_dir)

Nothing mutates the config after validate() has run.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── fileserver ./public --port 3000                            │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── FILESERVER_PORT=3000 fileserver                            │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7878


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    SERVED TREE
    - root_dir, sort_listing, max_file_size

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    CONCURRENCY
    - workers, queue_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVED TREE
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """
    Directory exposed to clients (the Server Root).
    Every served file or listing must resolve inside it.
    """

    sort_listing: bool = True
    """
    Sort directory listings by name.
    False keeps whatever order the directory enumeration yields.
    """

    max_file_size: Optional[int] = None
    """
    Largest file (in bytes) served in one response.
    Files are read fully into memory, so this caps memory per request.
    None = no limit.
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = DEFAULT_HOST
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (default)
    - "0.0.0.0" - All network interfaces
    """

    port: int = DEFAULT_PORT
    """The port number to listen on."""

    backlog: int = 128
    """Maximum number of queued connections before the OS refuses new ones."""

    buffer_size: int = 1024
    """
    Size of the single read taken from each connection.
    Only the request line is needed, so one small read is enough.
    """

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds for client connections.
    None = blocking (a stalled client stalls its handler forever).
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 0
    """
    Number of worker threads.
    0 = handle connections one at a time in the accept thread.
    """

    queue_size: int = 100
    """Maximum number of accepted connections waiting for a worker."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """
    Access log format: 'json' or 'text'.
    JSON is better for log aggregators, text for humans.
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "PyFileServer/1.0"
    """Value of the Server response header."""

    @property
    def root_path(self) -> Path:
        """The Server Root as an absolute path."""
        return Path(self.root_dir).expanduser().absolute()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESERVER_ROOT        Served directory (default: .)
        FILESERVER_HOST        Bind host (default: 127.0.0.1)
        FILESERVER_PORT        Bind port (default: 7878)
        FILESERVER_WORKERS     Worker threads, 0 = sequential (default: 0)
        FILESERVER_TIMEOUT     Client socket timeout in seconds (default: 30)
        FILESERVER_LOG_LEVEL   Logging level (default: INFO)
        FILESERVER_LOG_FORMAT  Access log format (default: text)

        =====================================================================
        """
        return cls(
            root_dir=os.getenv("FILESERVER_ROOT", "."),
            host=os.getenv("FILESERVER_HOST", DEFAULT_HOST),
            port=int(os.getenv("FILESERVER_PORT", str(DEFAULT_PORT))),
            workers=int(os.getenv("FILESERVER_WORKERS", "0")),
            timeout=float(os.getenv("FILESERVER_TIMEOUT", "30")),
            log_level=os.getenv("FILESERVER_LOG_LEVEL", "INFO"),
            log_format=os.getenv("FILESERVER_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Runs once at startup so a bad value fails immediately instead of
        on the first request.

        Raises:
            ValueError: If any value is out of range.
        """
        if not self.root_path.is_dir():
            raise ValueError(f"Root directory does not exist: {self.root_dir}")

        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.buffer_size < 64:
            raise ValueError("buffer_size must be >= 64")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.max_file_size is not None and self.max_file_size < 0:
            raise ValueError("max_file_size must be >= 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}. Must be 'text' or 'json'.")
