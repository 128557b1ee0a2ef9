"""Concurrency helpers: atomic values, one-slot signalers and timeouts."""

from __future__ import annotations

import threading
from typing import Callable, Generic, Iterator, TypeVar

from .server import ServerClosed

T = TypeVar("T")

_POLL_INTERVAL = 0.01


class Cancelled(Exception):
    """Raised when an operation is abandoned because its stop event was set."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class AtomicValue(Generic[T]):
    """A value that can be read and replaced safely from several threads."""

    def __init__(self, value: T | None = None) -> None:
        self._lock = threading.Lock()
        self._value = value

    def get(self) -> T | None:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value


class Signaler:
    """A wake-up flag holding at most one pending signal."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending = False

    def signal(self) -> None:
        """Record a signal; never blocks, and repeated signals collapse into one."""
        with self._cond:
            self._pending = True
            self._cond.notify_all()

    def wait(self, stop: threading.Event | None = None) -> None:
        """Block until a signal arrives, consuming it; raise Cancelled if ``stop`` is set."""
        with self._cond:
            while True:
                if self._pending:
                    self._pending = False
                    return
                if stop is not None and stop.is_set():
                    raise Cancelled()
                self._cond.wait(None if stop is None else _POLL_INTERVAL)


def with_timeout(seconds: float, func: Callable[[], T]) -> T:
    """Run ``func`` in a thread and return its result; raise TimeoutError if it takes too long."""
    outcome: dict[str, object] = {}
    finished = threading.Event()

    def run() -> None:
        try:
            outcome["value"] = func()
        except BaseException as exc:  # handed back to the caller below
            outcome["error"] = exc
        finally:
            finished.set()

    threading.Thread(target=run, daemon=True).start()
    if not finished.wait(seconds):
        raise TimeoutError(f"timed out after {seconds}s")
    if "error" in outcome:
        raise outcome["error"]  # type: ignore[misc]
    return outcome.get("value")  # type: ignore[return-value]


def _causes(err: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__


def is_ignored_error(err: BaseException | None) -> bool:
    """True for no error, a cancellation or a closed server, including wrapped ones."""
    if err is None:
        return True
    return any(isinstance(link, (Cancelled, ServerClosed)) for link in _causes(err))