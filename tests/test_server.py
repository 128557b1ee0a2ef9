import socket
import ssl
import threading
import time
import urllib.request
from http.server import BaseHTTPRequestHandler

import pytest

from httpaddon.server import ServerClosed, serve_context

CANCEL_AFTER = 0.5


class _Hello(BaseHTTPRequestHandler):
    def do_GET(self):
        body = b"hello world"
        self.send_response(200)
        self.send_header("foo", "bar")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args):
        pass


def _free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def test_serve_context_stops_with_server_closed():
    stop = threading.Event()
    threading.Timer(CANCEL_AFTER, stop.set).start()
    start = time.monotonic()
    with pytest.raises(ServerClosed):
        serve_context(stop, f"127.0.0.1:{_free_port()}", _Hello, None)
    elapsed = time.monotonic() - start
    assert CANCEL_AFTER - 0.01 <= elapsed < CANCEL_AFTER * 4


def test_serve_context_with_tls_stops_with_server_closed():
    stop = threading.Event()
    threading.Timer(CANCEL_AFTER, stop.set).start()
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    start = time.monotonic()
    with pytest.raises(ServerClosed):
        serve_context(stop, f"127.0.0.1:{_free_port()}", _Hello, context)
    elapsed = time.monotonic() - start
    assert CANCEL_AFTER - 0.01 <= elapsed < CANCEL_AFTER * 4


def test_serve_context_answers_requests():
    stop = threading.Event()
    port = _free_port()
    result = {}

    def client():
        deadline = time.monotonic() + 5
        try:
            while True:
                try:
                    with urllib.request.urlopen(f"http://127.0.0.1:{port}/", timeout=1) as resp:
                        result["body"] = resp.read()
                        result["foo"] = resp.headers["foo"]
                        return
                except OSError:
                    if time.monotonic() > deadline:
                        return
                    time.sleep(0.05)
        finally:
            stop.set()

    threading.Thread(target=client, daemon=True).start()
    with pytest.raises(ServerClosed):
        serve_context(stop, f"127.0.0.1:{port}", _Hello, None)
    assert result == {"body": b"hello world", "foo": "bar"}


def test_serve_context_already_stopped_returns_quickly():
    stop = threading.Event()
    stop.set()
    start = time.monotonic()
    with pytest.raises(ServerClosed, match="Server closed"):
        serve_context(stop, f"127.0.0.1:{_free_port()}", _Hello, None)
    assert time.monotonic() - start < 2.0


def test_serve_context_rejects_bad_address():
    with pytest.raises(ValueError):
        serve_context(threading.Event(), "nonsense", _Hello, None)


def test_serve_context_bind_failure_raises_oserror():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as taken:
        taken.bind(("127.0.0.1", 0))
        taken.listen(1)
        port = taken.getsockname()[1]
        with pytest.raises(OSError):
            serve_context(threading.Event(), f"127.0.0.1:{port}", _Hello, None)