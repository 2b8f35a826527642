"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the life of a single request.

=============================================================================
ONE READ, ONE WRITE, CLOSE
=============================================================================

TCP is a byte stream: a request line may in principle arrive split over
several recv() calls. A full HTTP server has to buffer until it sees
\\r\\n\\r\\n. This server only needs the request line, so it takes ONE
bounded read and works with whatever arrived:

    ┌─────────────────────────────────────────────────────────────────┐
    │                    Connection lifecycle                          │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   read_request()   recv(buffer_size) once                        │
    │        │           └── b"" → peer closed before sending          │
    │        ▼                                                         │
    │   (handler builds the response)                                  │
    │        │                                                         │
    │        ▼                                                         │
    │   send_response()  sendall(bytes)                                │
    │        │           └── failure → logged, connection aborted      │
    │        ▼                                                         │
    │   close()          shutdown(SHUT_WR) → drain → close             │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

A request line split across packets is not reassembled. Browsers and
curl send the request line in the first segment, so in practice the
single read holds it.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
              │              │                        ▲
              └──────────────┴────────────────────────┘
                 (empty read, timeout, or transport error)

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Tracked for logging and to make close() idempotent.
    """
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading the request bytes
    PROCESSING = "processing"  # Handler is building the response
    WRITING = "writing"        # Sending response bytes
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Size of the single read.
        timeout: Socket timeout in seconds (None = blocking).
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        """Apply the timeout to the socket."""
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read the request with a single bounded recv().

        Returns:
            Up to buffer_size bytes. b"" if the client closed or reset
            the connection before sending anything.

        Raises:
            TimeoutError: If nothing arrives within the socket timeout.
            OSError: On any other transport failure.
        """
        self.state = ConnectionState.READING

        try:
            return self.socket.recv(self.buffer_size)
        except socket.timeout as e:
            raise TimeoutError("Request read timeout") from e
        except (ConnectionResetError, BrokenPipeError):
            # Client disconnected abruptly
            return b""

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Send the complete response.

        sendall() either writes every byte or raises. A failure is not
        retried: the connection is reported as lost and gets closed.

        Args:
            data: Serialized response.

        Returns:
            True if the whole response was sent, False if the write failed.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            # Includes timeouts, resets and broken pipes
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): send FIN, telling the client the body is done
        2. Drain whatever the client still sends (headers we never read)
        3. close(): release the file descriptor

        Draining matters here: we read only the first buffer_size bytes,
        and closing a socket with unread data makes the kernel send RST,
        which can destroy the response before the client has read it.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Includes socket.timeout; we're closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows `with conn:` so the socket is closed on every path:

            with conn:
                data = conn.read_request()
                conn.send_response(response)
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
