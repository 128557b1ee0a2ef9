"""Service records and an in-memory fake service cache."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from .names import NamespacedName


@dataclass(frozen=True)
class Service:
    namespace: str = ""
    name: str = ""
    cluster_ip: str = ""
    ports: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "ports", tuple(self.ports))


class FakeServiceCache:
    """A service cache held entirely in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: dict[NamespacedName, Service] = {}

    def get(self, namespace: str, name: str) -> Service:
        """Return the stored service; raise KeyError if it is absent."""
        with self._lock:
            try:
                return self._current[NamespacedName(namespace, name)]
            except KeyError:
                raise KeyError("service not found") from None

    def add(self, service: Service) -> None:
        with self._lock:
            self._current[NamespacedName(service.namespace, service.name)] = service