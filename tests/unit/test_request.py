"""
Unit tests for request-line parsing and path decoding.
"""

import pytest

from fileserver.http.request import (
    Request,
    split_request_line,
    parse_path,
    decode_path,
    parse_request,
)


class TestSplitRequestLine:
    """Tests for split_request_line()."""

    def test_browser_request(self, sample_get_request: bytes):
        """Test that the second token of the first line is the path."""
        line, method, path = split_request_line(sample_get_request.decode())

        assert line == "GET /img/cat.png HTTP/1.1"
        assert method == "GET"
        assert path == "/img/cat.png"

    def test_empty_text_defaults_to_root(self):
        assert split_request_line("") == ("", "", "/")

    def test_single_token_defaults_to_root(self):
        """Test a request line with only a method."""
        assert split_request_line("GET\r\nHost: x\r\n\r\n") == ("GET", "GET", "/")

    def test_blank_first_line_defaults_to_root(self):
        _, method, path = split_request_line("\r\nGET /later HTTP/1.1\r\n")
        assert method == ""
        assert path == "/"

    def test_bare_lf_line_ending(self):
        """Test that a bare \\n also ends the request line."""
        assert parse_path("GET /docs HTTP/1.0\nHost: x\n\n") == "/docs"

    def test_extra_whitespace(self):
        assert parse_path("GET    /spaced   HTTP/1.1\r\n") == "/spaced"

    def test_method_is_not_validated(self):
        """Test that any method token still yields the path."""
        _, method, path = split_request_line("BREW /pot HTTP/1.1\r\n")
        assert method == "BREW"
        assert path == "/pot"

    def test_query_string_is_kept(self):
        assert parse_path("GET /a?b=c HTTP/1.1\r\n") == "/a?b=c"


class TestDecodePath:
    """Tests for percent-decoding."""

    @pytest.mark.parametrize("raw,decoded", [
        ("/a%20b.txt", "/a b.txt"),
        ("/caf%C3%A9", "/café"),
        ("/%22quoted%22", '/"quoted"'),
        ("/plain", "/plain"),
        ("/%2e%2e/etc", "/../etc"),
    ])
    def test_decode(self, raw: str, decoded: str):
        assert decode_path(raw) == decoded

    def test_malformed_utf8_is_replaced(self):
        """Test that invalid UTF-8 becomes U+FFFD instead of failing."""
        assert decode_path("/bad%FF") == "/bad�"

    def test_truncated_escape_is_left_alone(self):
        assert decode_path("/100%") == "/100%"


class TestParseRequest:
    """Tests for parse_request()."""

    def test_parse(self, sample_get_request: bytes):
        request = parse_request(sample_get_request, ("127.0.0.1", 50000))

        assert isinstance(request, Request)
        assert request.method == "GET"
        assert request.raw_path == "/img/cat.png"
        assert request.path == "/img/cat.png"
        assert request.client_ip == "127.0.0.1"
        assert request.raw == sample_get_request

    def test_decodes_path(self):
        request = parse_request(b"GET /a%20b.txt HTTP/1.1\r\n\r\n")

        assert request.raw_path == "/a%20b.txt"
        assert request.path == "/a b.txt"

    def test_invalid_utf8_bytes_do_not_reject(self):
        """Test that garbage bytes still produce a request."""
        request = parse_request(b"GET /\xff\xfe HTTP/1.1\r\n\r\n")
        assert request.path.startswith("/")

    def test_garbage_falls_back_to_root(self):
        request = parse_request(b"\x00\x01\x02")
        assert request.path == "/"

    def test_unknown_client(self):
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")
        assert request.client_ip == "-"
