"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\x0dIHDR" + b"\x00" * 32


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample browser-style GET request."""
    return (
        b"GET /img/cat.png HTTP/1.1\r\n"
        b"Host: localhost:7878\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def served_tree(tmp_path: Path) -> Path:
    """
    A small Server Root:

        www/
        ├── index.html
        ├── a b.txt
        ├── disguised.txt      (PNG bytes)
        ├── notes.md
        └── img/
            └── cat.png
        secret.txt             (outside the root)
    """
    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_text("<h1>hello</h1>", encoding="utf-8")
    (root / "a b.txt").write_text("spaced out", encoding="utf-8")
    (root / "disguised.txt").write_bytes(PNG_BYTES)
    (root / "notes.md").write_text("# notes\n", encoding="utf-8")
    (root / "img").mkdir()
    (root / "img" / "cat.png").write_bytes(PNG_BYTES)
    (tmp_path / "secret.txt").write_text("top secret", encoding="utf-8")
    return root


@pytest.fixture
def config(served_tree: Path) -> ServerConfig:
    """Test configuration serving the sample tree."""
    return ServerConfig(
        root_dir=str(served_tree),
        host="127.0.0.1",
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


HTTPResult = Tuple[int, Dict[str, str], bytes]


def send_raw(address: Tuple[str, int], payload: bytes, timeout: float = 5.0) -> bytes:
    """
    Send raw bytes, half-close, and read until the server closes.

    An empty payload models a client that disconnects without sending.
    """
    with socket.create_connection(address, timeout=timeout) as s:
        if payload:
            s.sendall(payload)
        s.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = s.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> HTTPResult:
    """Split a raw response into (status, lowercase headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


@pytest.fixture
def http_get() -> Callable[..., HTTPResult]:
    """Return a function that GETs a raw path from a running server."""
    def get(address: Tuple[str, int], path: str) -> HTTPResult:
        request = f"GET {path} HTTP/1.1\r\nHost: test\r\n\r\n".encode("utf-8")
        return split_response(send_raw(address, request))
    return get


@pytest.fixture
def raw_exchange() -> Callable[..., bytes]:
    """Return send_raw for tests that need full control of the bytes."""
    return send_raw


class BackgroundServer:
    """Test server helper that runs in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def start_server(free_port: int) -> Generator[Callable[[ServerConfig], BackgroundServer], None, None]:
    """Start FileServers for a test; every one is stopped afterwards."""
    started = []

    def start(config: ServerConfig) -> BackgroundServer:
        config.port = free_port
        background = BackgroundServer(FileServer(config))
        background.start()
        started.append(background)
        return background

    yield start

    for background in started:
        background.stop()
