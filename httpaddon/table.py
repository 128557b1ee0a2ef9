"""A live routing table kept current from add, update and delete events."""

from __future__ import annotations

import threading
from datetime import timedelta
from typing import Optional, Protocol

from .bucketing import Duration
from .names import NamespacedName, namespaced_name_from_object
from .routekey import RouteTarget, new_key_from_request
from .signals import AtomicValue, Signaler
from .tablememory import TableMemory

DEFAULT_WINDOW = timedelta(minutes=1)
DEFAULT_GRANULARITY = timedelta(seconds=1)


class TableNotSynced(Exception):
    """Raised by a health check before the table has computed its routes."""

    def __init__(self, message: str = "table has not synced") -> None:
        super().__init__(message)


class _Counter(Protocol):
    def ensure_key(self, host: str, window: Duration, granularity: Duration) -> None: ...

    def update_buckets(self, host: str, window: Duration, granularity: Duration) -> None: ...

    def remove_key(self, host: str) -> bool: ...


def _rate_shape(target: RouteTarget) -> tuple[timedelta, timedelta]:
    window = target.rate_window if target.rate_window is not None else DEFAULT_WINDOW
    granularity = (
        target.rate_granularity
        if target.rate_granularity is not None
        else DEFAULT_GRANULARITY
    )
    return window, granularity


class Table:
    """Tracks route targets and serves requests from a periodically rebuilt memory."""

    def __init__(self, counter: _Counter) -> None:
        self._counter = counter
        self._targets: dict[NamespacedName, RouteTarget] = {}
        self._lock = threading.Lock()
        self._memory: AtomicValue[TableMemory] = AtomicValue()
        self._signaler = Signaler()

    def on_add(self, target: RouteTarget) -> None:
        if not isinstance(target, RouteTarget):
            return
        key = namespaced_name_from_object(target)
        window, granularity = _rate_shape(target)
        self._counter.ensure_key(str(key), window, granularity)
        try:
            with self._lock:
                self._targets[key] = target
        finally:
            self._signaler.signal()

    def on_update(self, old_target: RouteTarget, new_target: RouteTarget) -> None:
        if not isinstance(old_target, RouteTarget) or not isinstance(new_target, RouteTarget):
            return
        old_key = namespaced_name_from_object(old_target)
        new_key = namespaced_name_from_object(new_target)
        window, granularity = _rate_shape(new_target)
        self._counter.update_buckets(str(new_key), window, granularity)
        try:
            with self._lock:
                self._targets[new_key] = new_target
                if old_key != new_key:
                    self._targets.pop(old_key, None)
                    self._counter.remove_key(str(old_key))
        finally:
            self._signaler.signal()

    def on_delete(self, target: RouteTarget) -> None:
        if not isinstance(target, RouteTarget):
            return
        key = namespaced_name_from_object(target)
        try:
            with self._lock:
                self._targets.pop(key, None)
                self._counter.remove_key(str(key))
        finally:
            self._signaler.signal()

    def new_memory(self) -> TableMemory:
        """Build a fresh TableMemory from the targets known now."""
        with self._lock:
            targets = list(self._targets.values())
        memory = TableMemory()
        for target in targets:
            memory = memory.remember(target)
        return memory

    def refresh_memory(self, stop: Optional[threading.Event] = None) -> None:
        """Rebuild the memory now and after every change; raise Cancelled once stopped."""
        while True:
            self._memory.set(self.new_memory())
            self._signaler.wait(stop)

    def route(self, url: Optional[str], host: str = "") -> Optional[RouteTarget]:
        """The target serving a request for ``url`` with the given Host header."""
        memory = self._memory.get()
        if memory is None:
            return None
        key = new_key_from_request(url, host)
        if key is None:
            return None
        return memory.route(key)

    def has_synced(self) -> bool:
        return self._memory.get() is not None

    def health_check(self) -> None:
        """Raise TableNotSynced until the routes have been computed once."""
        if not self.has_synced():
            raise TableNotSynced()