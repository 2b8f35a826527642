"""
Unit tests for the Connection wrapper.
"""

import socket

import pytest

from fileserver.core.connection import Connection, ConnectionState


@pytest.fixture
def pair():
    server_sock, client_sock = socket.socketpair()
    yield server_sock, client_sock
    client_sock.close()
    server_sock.close()


def test_single_bounded_read(pair):
    server_sock, client_sock = pair
    conn = Connection(socket=server_sock, address=("127.0.0.1", 1), buffer_size=8)

    client_sock.sendall(b"GET /long/path HTTP/1.1\r\n\r\n")

    assert conn.read_request() == b"GET /lon"
    assert conn.state == ConnectionState.READING


def test_read_after_peer_close(pair):
    server_sock, client_sock = pair
    conn = Connection(socket=server_sock, address=("127.0.0.1", 1))

    client_sock.shutdown(socket.SHUT_WR)

    assert conn.read_request() == b""


def test_read_timeout(pair):
    server_sock, _ = pair
    conn = Connection(socket=server_sock, address=("127.0.0.1", 1), timeout=0.05)

    with pytest.raises(TimeoutError):
        conn.read_request()


def test_send_and_close(pair):
    server_sock, client_sock = pair

    with Connection(socket=server_sock, address=("127.0.0.1", 1)) as conn:
        assert conn.send_response(b"hello")

    assert conn.state == ConnectionState.CLOSED
    assert client_sock.recv(16) == b"hello"
    assert client_sock.recv(16) == b""


def test_close_is_idempotent(pair):
    server_sock, _ = pair
    conn = Connection(socket=server_sock, address=("127.0.0.1", 1), timeout=0.05)

    conn.close()
    conn.close()

    assert conn.state == ConnectionState.CLOSED


def test_client_ip():
    server_sock, client_sock = socket.socketpair()
    try:
        assert Connection(socket=server_sock, address=("10.0.0.7", 5)).client_ip == "10.0.0.7"
    finally:
        server_sock.close()
        client_sock.close()
