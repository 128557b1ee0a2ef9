"""Backoff schedules and TCP dialing with retries."""

from __future__ import annotations

import random
import socket
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable

from .signals import Cancelled

Dialer = Callable[..., socket.socket]


@dataclass
class Backoff:
    """An exponential backoff schedule; durations are in seconds."""

    duration: float
    factor: float = 0.0
    jitter: float = 0.0
    steps: int = 0
    cap: float = 0.0

    def step(self) -> float:
        """Return the next delay and advance the schedule."""
        if self.steps < 1:
            return self._jittered(self.duration) if self.jitter > 0 else self.duration
        self.steps -= 1
        delay = self.duration
        if self.factor != 0:
            self.duration = self.duration * self.factor
            if self.cap > 0 and self.duration > self.cap:
                self.duration = self.cap
                self.steps = 0
        if self.jitter > 0:
            delay = self._jittered(delay)
        return delay

    def _jittered(self, delay: float) -> float:
        return delay + random.random() * self.jitter * delay


def min_total_backoff_duration(backoff: Backoff) -> float:
    """Minimum seconds a backoff waits over all its steps, ignoring jitter."""
    initial_ms = round(backoff.duration * 1_000_000_000) // 1_000_000
    total_ms = initial_ms + sum(initial_ms * i for i in range(2, backoff.steps + 1))
    return total_ms / 1000


def _split_host_port(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, int(port)


def dial_context_with_retry(connect_timeout: float, backoff: Backoff) -> Dialer:
    """Return ``dial(address, stop=None)`` that retries failed connects with backoff."""
    tries = backoff.steps

    def dial(address: str, stop: threading.Event | None = None) -> socket.socket:
        target = _split_host_port(address)
        schedule = replace(backoff)
        last_error: OSError | None = None
        for _ in range(tries):
            if stop is not None and stop.is_set():
                raise Cancelled("context timed out: context canceled") from last_error
            try:
                conn = socket.create_connection(target, timeout=connect_timeout)
            except OSError as exc:
                last_error = exc
            else:
                conn.settimeout(None)
                conn.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
                return conn
            delay = schedule.step()
            if stop is None:
                time.sleep(delay)
            elif stop.wait(delay):
                raise Cancelled("context timed out: context canceled") from last_error
        if last_error is None:
            raise ConnectionError(f"no attempts made to dial {address}")
        raise last_error

    return dial