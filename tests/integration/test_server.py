"""
Integration tests: a real FileServer on a real port.
"""

import socket
import threading
from pathlib import Path

import pytest

from fileserver.config import ServerConfig


class TestSequentialServer:
    """Default mode: one connection at a time in the accept thread."""

    @pytest.fixture
    def server(self, start_server, config: ServerConfig):
        return start_server(config)

    def test_root_listing(self, server, http_get):
        status, headers, body = http_get(server.address, "/")

        assert status == 200
        assert headers["content-type"] == "text/html; charset=utf-8"
        assert int(headers["content-length"]) == len(body)
        assert b"Currently in /" in body
        assert b'href="/img"' in body

    def test_traversal(self, server, http_get):
        status, _, body = http_get(server.address, "/../../etc/passwd")

        assert status == 403
        assert body == b"Backtracking not allowed."

    def test_favicon(self, server, http_get):
        status, headers, body = http_get(server.address, "/favicon.ico")

        assert status == 404
        assert body == b""
        assert headers["content-length"] == "0"

    def test_sniffed_file(self, server, http_get, served_tree: Path):
        status, headers, body = http_get(server.address, "/disguised.txt")

        assert status == 200
        assert headers["content-type"] == "image/png"
        assert body == (served_tree / "disguised.txt").read_bytes()

    def test_missing(self, server, http_get):
        status, _, body = http_get(server.address, "/no/such/file")

        assert status == 404
        assert body == b"File not found."

    def test_encoded_name(self, server, http_get):
        status, _, body = http_get(server.address, "/a%20b.txt")

        assert status == 200
        assert body == b"spaced out"

    def test_connection_closes_after_response(self, server, http_get):
        _, headers, _ = http_get(server.address, "/index.html")
        assert headers["connection"] == "close"

    def test_follow_listing_links(self, server, http_get):
        """Test that every link in the root listing can be fetched."""
        import re

        _, _, body = http_get(server.address, "/")
        hrefs = re.findall(r'href="([^"]*)"', body.decode("utf-8"))

        for href in hrefs:
            status, _, _ = http_get(server.address, href.replace("&amp;", "&"))
            assert status == 200, href

    def test_client_that_sends_nothing(self, server, raw_exchange, http_get):
        """Test that an empty connection gets no reply and the server carries on."""
        assert raw_exchange(server.address, b"") == b""
        assert http_get(server.address, "/")[0] == 200

    def test_repeated_requests(self, server, http_get):
        results = [http_get(server.address, "/img/cat.png") for _ in range(3)]

        assert all(status == 200 for status, _, _ in results)
        assert len({body for _, _, body in results}) == 1


class TestThreadedServer:
    """workers > 0: connections are handled by a thread pool."""

    @pytest.fixture
    def server(self, start_server, config: ServerConfig):
        config.workers = 4
        return start_server(config)

    def test_concurrent_clients(self, server, http_get):
        results = []
        lock = threading.Lock()

        def fetch(path):
            result = http_get(server.address, path)
            with lock:
                results.append((path, result[0]))

        paths = ["/", "/img", "/index.html", "/a%20b.txt", "/missing"] * 4
        threads = [threading.Thread(target=fetch, args=(p,)) for p in paths]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert len(results) == len(paths)
        for path, status in results:
            assert status == (404 if path == "/missing" else 200)

    def test_slow_client_does_not_block_others(self, server, http_get):
        """Test that an idle connection holds one worker, not the server."""
        with socket.create_connection(server.address, timeout=5.0):
            status, _, _ = http_get(server.address, "/index.html")
        assert status == 200
