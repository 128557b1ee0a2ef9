"""A simple start/stop stopwatch."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Stopwatch:
    """Records a start and stop time; usable as a context manager."""

    start_time: datetime | None = None
    stop_time: datetime | None = None

    def start(self) -> None:
        self.start_time = _now()

    def stop(self) -> None:
        self.stop_time = _now()

    def elapsed_time(self) -> timedelta:
        """Time between start and stop; both must have been recorded."""
        if self.start_time is None or self.stop_time is None:
            raise ValueError("stopwatch needs both a start and a stop time")
        return self.stop_time - self.start_time

    def __enter__(self) -> Stopwatch:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()