"""Time-bucketed request counters for computing windowed request rates."""

from __future__ import annotations

import math
import threading
from datetime import datetime, timedelta, timezone
from typing import Iterator, Union

PRECISION = 3

Duration = Union[timedelta, float, int]

_EPOCH_AWARE = datetime(1970, 1, 1, tzinfo=timezone.utc)
_EPOCH_NAIVE = datetime(1970, 1, 1)
_MICROSECOND = timedelta(microseconds=1)
_SECOND_US = 1_000_000
# The zero time (January 1st of year 1), in microseconds since the Unix epoch.
_ZERO_TIME_US = -62_135_596_800 * _SECOND_US


def _epoch_for(t: datetime) -> datetime:
    return _EPOCH_NAIVE if t.tzinfo is None else _EPOCH_AWARE


def _to_us(t: datetime) -> int:
    return (t - _epoch_for(t)) // _MICROSECOND


def _from_us(us: int, like: datetime) -> datetime:
    return _epoch_for(like) + timedelta(microseconds=us)


def _as_timedelta(d: Duration) -> timedelta:
    return d if isinstance(d, timedelta) else timedelta(seconds=d)


def _div_trunc(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def round_to_n_digits(n: int, f: float) -> float:
    """Round ``f`` down to ``n`` decimal digits."""
    p = 10.0**n
    return math.floor(f * p) / p


class RequestsBuckets:
    """A ring of per-granularity request counts covering a sliding window."""

    def __init__(self, window: Duration, granularity: Duration) -> None:
        self.window = _as_timedelta(window)
        self.granularity = _as_timedelta(granularity)
        self._window_us = self.window // _MICROSECOND
        self._gran_us = self.granularity // _MICROSECOND
        count = -(-self._window_us // self._gran_us)
        self.buckets: list[int] = [0] * count
        self._first_write = _ZERO_TIME_US
        self._last_write = _ZERO_TIME_US
        self._window_total = 0
        self._lock = threading.Lock()

    def _truncate(self, us: int) -> int:
        if self._gran_us <= 0:
            return us
        return us - (us - _ZERO_TIME_US) % self._gran_us

    def _index(self, us: int) -> int:
        unix_seconds = us // _SECOND_US
        return _div_trunc(unix_seconds, self._gran_us // _SECOND_US)

    def _valid_buckets(self) -> float:
        elapsed = _div_trunc(self._last_write - self._first_write, self._gran_us)
        return min(float(elapsed) + 1, float(len(self.buckets)))

    def is_empty(self, now: datetime) -> bool:
        """True if nothing was recorded within the window before ``now``."""
        now_us = self._truncate(_to_us(now))
        with self._lock:
            return now_us - self._last_write > self._window_us

    def window_average(self, now: datetime) -> float:
        """Average bucket value over the (possibly partial) window ending at ``now``."""
        now_us = self._truncate(_to_us(now))
        with self._lock:
            since_last = now_us - self._last_write
            if since_last <= 0:
                return round_to_n_digits(
                    PRECISION, self._window_total / self._valid_buckets()
                )
            if since_last < self._window_us:
                size = len(self.buckets)
                start = self._index(self._last_write)
                end = self._index(now_us)
                total = self._window_total - sum(
                    self.buckets[i % size] for i in range(start + 1, end + 1)
                )
                return round_to_n_digits(PRECISION, total / self._valid_buckets())
            return 0.0

    def record(self, now: datetime, value: int) -> None:
        """Add ``value`` to the bucket for ``now``, zeroing any skipped buckets."""
        now_us = _to_us(now)
        bucket_us = self._truncate(now_us)
        with self._lock:
            size = len(self.buckets)
            write_idx = self._index(now_us)
            if self._last_write != bucket_us:
                if bucket_us + self._window_us <= self._last_write:
                    # More than a window older than the newest data: ignore.
                    return
                if self._first_write == _ZERO_TIME_US or self._first_write > bucket_us:
                    self._first_write = bucket_us
                if bucket_us > self._last_write:
                    if bucket_us - self._last_write >= self._window_us:
                        self._first_write = bucket_us
                        self.buckets = [0] * size
                        self._window_total = 0
                    else:
                        for i in range(self._index(self._last_write) + 1, write_idx + 1):
                            idx = i % size
                            self._window_total -= self.buckets[idx]
                            self.buckets[idx] = 0
                    self._last_write = bucket_us
            self.buckets[write_idx % size] += value
            self._window_total += value

    def for_each_bucket(self, now: datetime) -> Iterator[tuple[datetime, int]]:
        """Yield ``(bucket time, value)`` pairs from the last write backwards."""
        now_us = self._truncate(_to_us(now))
        with self._lock:
            size = len(self.buckets)
            count = size - _div_trunc(now_us - self._last_write, self._gran_us)
            bucket_us = self._last_write
            index = self._index(bucket_us)
            snapshot = []
            for _ in range(max(count, 0)):
                snapshot.append((bucket_us, self.buckets[index % size]))
                index -= 1
                bucket_us -= self._gran_us
        for us, value in snapshot:
            yield _from_us(us, now), value