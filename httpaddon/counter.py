"""In-memory request counters per host, plus fakes for tests."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .bucketing import Duration, RequestsBuckets, _as_timedelta
from .counts import Count, Counts

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Memory:
    """Counts pending requests and request rates per host, in memory."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or _utcnow
        self._concurrency: dict[str, int] = {}
        self._rps: dict[str, RequestsBuckets] = {}
        self._lock = threading.Lock()

    def increase(self, host: str, delta: int) -> None:
        """Add ``delta`` pending requests for ``host``; the host must be known."""
        with self._lock:
            buckets = self._rps.get(host)
            if buckets is None:
                raise KeyError(f"no request buckets for host {host!r}")
            self._concurrency[host] = self._concurrency.get(host, 0) + delta
            buckets.record(self._clock(), delta)

    def decrease(self, host: str, delta: int) -> None:
        """Remove ``delta`` pending requests for ``host``, never going below zero."""
        with self._lock:
            current = self._concurrency.get(host)
            if current is None:
                return
            self._concurrency[host] = max(current - delta, 0)

    def _ensure_locked(self, host: str, window: Duration, granularity: Duration) -> None:
        self._concurrency.setdefault(host, 0)
        if host not in self._rps:
            self._rps[host] = RequestsBuckets(window, granularity)

    def ensure_key(self, host: str, window: Duration, granularity: Duration) -> None:
        """Make sure ``host`` is tracked, with buckets of the given shape if new."""
        with self._lock:
            self._ensure_locked(host, window, granularity)

    def update_buckets(self, host: str, window: Duration, granularity: Duration) -> None:
        """Track ``host`` and replace its buckets if their shape has changed."""
        window_td = _as_timedelta(window)
        granularity_td = _as_timedelta(granularity)
        with self._lock:
            self._ensure_locked(host, window_td, granularity_td)
            buckets = self._rps[host]
            if buckets.window != window_td or buckets.granularity != granularity_td:
                self._rps[host] = RequestsBuckets(window_td, granularity_td)

    def remove_key(self, host: str) -> bool:
        """Stop tracking ``host``; True if it was fully tracked."""
        with self._lock:
            had_concurrency = self._concurrency.pop(host, None) is not None
            had_rps = self._rps.pop(host, None) is not None
            return had_concurrency and had_rps

    def current(self) -> Counts:
        """A snapshot of all hosts' concurrency and windowed rate."""
        with self._lock:
            now = self._clock()
            counts = Counts()
            for host, concurrency in self._concurrency.items():
                buckets = self._rps.get(host)
                if buckets is None:
                    raise KeyError(f"rps map doesn't contain the key '{host}'")
                counts.counts[host] = Count(concurrency, buckets.window_average(now))
            return counts


@dataclass(frozen=True)
class HostAndCount:
    """A notification that a host's count changed by ``count``."""

    host: str
    count: int


class FakeCounter:
    """A counter for tests that reports every change on the ``resized`` queue.

    The queue holds one pending notification; a change made while it is full
    waits up to ``resize_timeout`` seconds and then raises TimeoutError.
    The last bucket shape asked for each host is kept in ``bucket_shapes``.
    """

    def __init__(self, resize_timeout: float = 1.0) -> None:
        self.ret_map: dict[str, Count] = {}
        self.resized: queue.Queue[HostAndCount] = queue.Queue(maxsize=1)
        self.resize_timeout = resize_timeout
        self.bucket_shapes: dict[str, tuple[Duration, Duration]] = {}
        self._lock = threading.Lock()

    def _notify(self, host: str, delta: int, operation: str) -> None:
        try:
            self.resized.put(HostAndCount(host, delta), timeout=self.resize_timeout)
        except queue.Full:
            raise TimeoutError(
                f"FakeCounter.{operation} timeout after {self.resize_timeout}s"
            ) from None

    def increase(self, host: str, delta: int) -> None:
        with self._lock:
            count = self.ret_map.get(host, Count())
            self.ret_map[host] = Count(count.concurrency + delta, count.rps + delta)
        self._notify(host, delta, "increase")

    def decrease(self, host: str, delta: int) -> None:
        with self._lock:
            count = self.ret_map.get(host, Count())
            self.ret_map[host] = Count(count.concurrency - delta, count.rps)
        self._notify(host, delta, "decrease")

    def ensure_key(self, host: str, window: Duration, granularity: Duration) -> None:
        with self._lock:
            self.ret_map[host] = Count(concurrency=0)

    def update_buckets(self, host: str, window: Duration, granularity: Duration) -> None:
        """Remember the bucket shape asked for ``host``; counts are left alone."""
        with self._lock:
            self.bucket_shapes[host] = (window, granularity)

    def remove_key(self, host: str) -> bool:
        with self._lock:
            return self.ret_map.pop(host, None) is not None

    def current(self) -> Counts:
        with self._lock:
            return Counts(dict(self.ret_map))


@dataclass
class FakeCountReader:
    """Reports fixed counts for ``sample.com``, or raises ``err`` if set."""

    concurrency: int = 0
    rps: float = 0.0
    err: Optional[BaseException] = None

    def current(self) -> Counts:
        if self.err is not None:
            raise self.err
        return Counts({"sample.com": Count(self.concurrency, self.rps)})


__all__ = [
    "Memory",
    "HostAndCount",
    "FakeCounter",
    "FakeCountReader",
]