"""Plain TCP server and client sockets."""

from __future__ import annotations

import socket

DEFAULT_PORT = 30003


def create_server_socket(port: int = DEFAULT_PORT, backlog: int = 10) -> socket.socket:
    """Create a TCP socket bound to all local addresses and listening."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        sock.bind(("", port))
        sock.listen(backlog)
    except OSError:
        sock.close()
        raise
    return sock


def create_client_socket(ip: str, port: int = DEFAULT_PORT) -> socket.socket:
    """Create a TCP socket connected to ip:port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP)
    try:
        sock.connect((ip, port))
    except OSError:
        sock.close()
        raise
    return sock