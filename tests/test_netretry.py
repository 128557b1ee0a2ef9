import socket
import threading
import time

import pytest

from httpaddon.netretry import Backoff, dial_context_with_retry, min_total_backoff_duration
from httpaddon.signals import Cancelled


@pytest.fixture
def refused_address():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    yield f"127.0.0.1:{port}"
    sock.close()


def test_dial_context_with_retry_waits_full_backoff(refused_address):
    conn_timeout = 0.01
    backoff = Backoff(duration=conn_timeout, factor=2, jitter=0.5, steps=5)
    dial = dial_context_with_retry(conn_timeout, backoff)
    min_total = min_total_backoff_duration(backoff)

    start = time.monotonic()
    with pytest.raises(OSError):
        dial(refused_address)
    elapsed = time.monotonic() - start
    assert elapsed >= min_total


def test_dialer_does_not_consume_shared_backoff(refused_address):
    backoff = Backoff(duration=0.001, factor=2, steps=2)
    dial = dial_context_with_retry(0.01, backoff)
    with pytest.raises(OSError):
        dial(refused_address)
    assert backoff.steps == 2
    assert backoff.duration == 0.001


def test_min_total_backoff_duration():
    assert min_total_backoff_duration(Backoff(duration=0.01, factor=2, steps=5)) == pytest.approx(0.15)
    assert min_total_backoff_duration(Backoff(duration=0.01, steps=1)) == pytest.approx(0.01)


def test_step_grows_by_factor_then_holds():
    b = Backoff(duration=0.01, factor=2, steps=3)
    delays = [b.step() for _ in range(4)]
    assert delays == pytest.approx([0.01, 0.02, 0.04, 0.08])
    assert b.steps == 0


def test_step_respects_cap():
    b = Backoff(duration=1.0, factor=10, steps=5, cap=5.0)
    assert b.step() == 1.0
    assert b.duration == 5.0
    assert b.steps == 0


def test_step_jitter_bounds():
    b = Backoff(duration=1.0, jitter=0.5, steps=10)
    for _ in range(10):
        assert 1.0 <= b.step() <= 1.5


def test_dial_succeeds_against_listener():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    port = server.getsockname()[1]
    try:
        dial = dial_context_with_retry(1.0, Backoff(duration=0.01, steps=3))
        conn = dial(f"127.0.0.1:{port}")
        try:
            assert conn.getpeername()[1] == port
            assert conn.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) != 0
        finally:
            conn.close()
    finally:
        server.close()


def test_dial_stops_when_cancelled(refused_address):
    dial = dial_context_with_retry(0.01, Backoff(duration=5.0, steps=5))
    stop = threading.Event()
    threading.Timer(0.1, stop.set).start()
    start = time.monotonic()
    with pytest.raises(Cancelled, match="context timed out"):
        dial(refused_address, stop)
    assert time.monotonic() - start < 4.0


def test_dial_rejects_bad_address():
    dial = dial_context_with_retry(0.01, Backoff(duration=0.01, steps=1))
    with pytest.raises(ValueError):
        dial("no-port-here")