"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

The connection acceptor: binds, listens, and hands each accepted socket
to a callback. It knows nothing about HTTP.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a TCP socket
    2. bind()      Associate it with IP:PORT (default 127.0.0.1:7878)
    3. listen()    Let the OS queue incoming connections (backlog)
    4. accept()    Take one connection → a NEW socket for that client
    5. close()     Release the listening socket on shutdown

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    └───────────┬───────────┘
                                │ accept()
                                ▼
                        ┌───────────────┐
                        │  Connection   │ ──► connection_handler(conn)
                        └───────────────┘

The handler either processes the connection right away (sequential
mode) or queues it for a worker thread. Either way the accept loop
only resumes once the handler returns.

=============================================================================
SHUTDOWN
=============================================================================

accept() runs with a 1-second timeout so the loop can notice that
shutdown() was called (from a signal handler or another thread) without
waiting for one more client to connect.

SIGINT (Ctrl+C) and SIGTERM trigger shutdown() when the server runs in
the main thread. Signal handlers can only be installed from the main
thread, so a server started in a background thread (tests, embedding)
skips that step and is stopped with shutdown() instead.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        The socket is not created until start().

        Args:
            config: Server configuration (host, port, backlog, timeouts).
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._shutdown_event = threading.Event()
        self._ready_event = threading.Event()
        self._original_handlers: dict = {}
        self._bound_address: Optional[Tuple[str, int]] = None

    @property
    def is_running(self) -> bool:
        """Check if server is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        Get the address the server listens on.

        After start() this is the actual bound address, so port 0 shows
        the port the OS picked.
        """
        return self._bound_address or (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Periodic wake-up so the accept loop can see shutdown()
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """Install SIGINT/SIGTERM handlers that trigger shutdown()."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Start accepting connections.

        This method BLOCKS until shutdown() is called.

        Args:
            connection_handler: Called with each accepted Connection.

        Raises:
            OSError: If the address cannot be bound.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        self._bound_address = self._socket.getsockname()[:2]

        self._running = True
        self._shutdown_event.clear()
        self._setup_signals()

        host, port = self.address
        logger.info(f"Listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown.

        A failed accept() is fatal only to that one attempt; the loop
        keeps going unless the server is shutting down.
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            connection_handler(conn)

    def shutdown(self):
        """
        Initiate shutdown.

        Safe to call from a signal handler or another thread, and more
        than once.
        """
        logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        """Restore signal handlers and close the listening socket."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._running = False
        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until the server is listening.

        Returns:
            True once listening, False on timeout.
        """
        return self._ready_event.wait(timeout)

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the server to shut down.

        Returns:
            True if shutdown completed, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
