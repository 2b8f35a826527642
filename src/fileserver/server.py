"""
=============================================================================
FILE SERVER
=============================================================================

Ties the components together into a runnable server.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │                        ┌─────────────────┐                          │
    │                        │   FileServer    │                          │
    │                        │ (Orchestrator)  │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                    │
    │            ┌────────────────────┼────────────────────┐              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌────────────────┐      │
    │    │ SocketServer │    │  ThreadPool  │    │ RequestHandler │      │
    │    │  (accept)    │    │  (optional)  │    │  (pipeline)    │      │
    │    └──────────────┘    └──────────────┘    └────────────────┘      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DISPATCH MODES
=============================================================================

    workers == 0 (default)
        The accept thread handles each connection to completion before
        accepting the next one. Simple and strictly ordered.

    workers > 0
        The accept thread queues each connection on the ThreadPool and
        goes straight back to accept(). When the queue is full the
        client gets 503 "Server busy." right away.

Requests share nothing but the read-only Server Root, so both modes
need no locking.

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers.request_handler import RequestHandler
from .http.response import service_unavailable


logger = logging.getLogger(__name__)


class FileServer:
    """
    HTTP file server for one Server Root.

    Usage:
        server = FileServer(ServerConfig(root_dir="./public"))
        server.run()  # Blocks until Ctrl+C / SIGTERM / shutdown()
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Defaults serve the current
                    directory on 127.0.0.1:7878.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._handler = RequestHandler(self.config)

        self._thread_pool: Optional[ThreadPool] = None
        if self.config.workers > 0:
            self._thread_pool = ThreadPool(
                workers=self.config.workers,
                queue_size=self.config.queue_size,
            )

    @property
    def address(self) -> Tuple[str, int]:
        """Address the server listens on (actual port once started)."""
        return self._socket_server.address

    @property
    def handler(self) -> RequestHandler:
        return self._handler

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            setup_logging: Configure the root logger from the config.
                           Pass False when the caller manages logging.

        Raises:
            OSError: If the address cannot be bound.
        """
        if setup_logging:
            self._setup_logging()

        logger.info(f"Serving files from: {self.config.root_path}")

        if self._thread_pool:
            self._thread_pool.start()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("fileserver").setLevel(level)

    def shutdown(self):
        """
        Stop accepting connections.

        run() returns once the accept loop has noticed, which takes at
        most about one second.
        """
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the server is listening."""
        return self._socket_server.wait_until_ready(timeout)

    def _shutdown(self):
        """Let queued connections finish, then stop the workers."""
        if self._thread_pool:
            self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION DISPATCH
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called by SocketServer for each accepted connection."""
        if self._thread_pool is None:
            self._handler.handle_connection(conn)
            return

        if not self._thread_pool.submit(self._handler.handle_connection, args=(conn,)):
            logger.warning(f"[{conn.id}] Worker queue full, rejecting connection")
            with conn:
                conn.send_response(service_unavailable().to_bytes(self.config.server_name))
