"""Serve HTTP until a stop event is set."""

from __future__ import annotations

import logging
import socket
import ssl
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

log = logging.getLogger(__name__)


class ServerClosed(Exception):
    """Raised by serve_context once the server has been shut down."""

    def __init__(self, message: str = "http: Server closed") -> None:
        super().__init__(message)


class _IPv6Server(ThreadingHTTPServer):
    address_family = socket.AF_INET6


def _split_addr(addr: str) -> tuple[str, int]:
    host, sep, port = addr.rpartition(":")
    if not sep or (port and not port.isdigit()):
        raise ValueError(f"invalid listen address {addr!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port) if port else 0


def serve_context(
    stop: threading.Event,
    addr: str,
    handler_class: type[BaseHTTPRequestHandler],
    ssl_context: ssl.SSLContext | None = None,
) -> None:
    """Serve on ``addr`` until ``stop`` is set, then raise ServerClosed.

    With ``ssl_context`` the listener speaks TLS. Errors opening the listener
    propagate as OSError.
    """
    host, port = _split_addr(addr)
    server_class = _IPv6Server if ":" in host else ThreadingHTTPServer
    server = server_class((host, port), handler_class)
    if ssl_context is not None:
        server.socket = ssl_context.wrap_socket(
            server.socket, server_side=True, do_handshake_on_connect=False
        )

    def shutdown_when_stopped() -> None:
        stop.wait()
        try:
            server.shutdown()
        except Exception:
            log.exception("failed shutting down server")

    threading.Thread(target=shutdown_when_stopped, daemon=True).start()
    try:
        server.serve_forever()
    finally:
        server.server_close()
    raise ServerClosed()