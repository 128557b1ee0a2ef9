"""Service endpoints, URL lookup, fake endpoints and an in-memory fake cache."""

from __future__ import annotations

import enum
import json
import re
import threading
from collections import deque
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterator, Optional, Sequence
from urllib.parse import urlsplit

from .names import NamespacedName

WATCHER_CAPACITY = 100

_PORT = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class EndpointAddress:
    ip: str = ""
    hostname: str = ""


@dataclass(frozen=True)
class EndpointPort:
    port: int = 0
    name: str = ""


@dataclass(frozen=True)
class EndpointSubset:
    addresses: tuple[EndpointAddress, ...] = ()
    ports: tuple[EndpointPort, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", tuple(self.addresses))
        object.__setattr__(self, "ports", tuple(self.ports))


@dataclass(frozen=True)
class Endpoints:
    """The addresses behind a service."""

    namespace: str = ""
    name: str = ""
    subsets: tuple[EndpointSubset, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "subsets", tuple(self.subsets))


EndpointsFn = Callable[[str, str], Endpoints]


class EventType(enum.Enum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class WatchEvent:
    type: EventType
    object: Any


class FakeWatcher:
    """A buffered stream of watch events fed by hand.

    Events sent after stop() are dropped; sending to a full buffer raises
    RuntimeError.
    """

    def __init__(self, capacity: int = WATCHER_CAPACITY) -> None:
        self._capacity = capacity
        self._events: deque[WatchEvent] = deque()
        self._cond = threading.Condition()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        with self._cond:
            return self._stopped

    def _send(self, event_type: EventType, obj: Any) -> None:
        with self._cond:
            if self._stopped:
                return
            if len(self._events) >= self._capacity:
                raise RuntimeError("channel full")
            self._events.append(WatchEvent(event_type, obj))
            self._cond.notify_all()

    def add(self, obj: Any) -> None:
        self._send(EventType.ADDED, obj)

    def modify(self, obj: Any) -> None:
        self._send(EventType.MODIFIED, obj)

    def delete(self, obj: Any) -> None:
        self._send(EventType.DELETED, obj)

    def stop(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def next_event(self, timeout: Optional[float] = None) -> Optional[WatchEvent]:
        """Return the next event, or None once stopped and drained.

        Raises TimeoutError if nothing arrives within ``timeout`` seconds.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: bool(self._events) or self._stopped, timeout
            )
            if not ready:
                raise TimeoutError("no watch event received")
            if self._events:
                return self._events.popleft()
            return None

    def __iter__(self) -> Iterator[WatchEvent]:
        while (event := self.next_event()) is not None:
            yield event


def endpoints_for_service(
    namespace: str,
    service_name: str,
    service_port: str,
    endpoints_fn: EndpointsFn,
) -> list[str]:
    """Return an ``http://ip:port`` URL for every address behind the service."""
    endpoints = endpoints_fn(namespace, service_name)
    urls = []
    for subset in endpoints.subsets:
        for address in subset.addresses:
            url = f"http://{address.ip}:{service_port}"
            urlsplit(url).port  # raises ValueError for a malformed port
            urls.append(url)
    return urls


def _host_and_port(url: str) -> tuple[str, str]:
    hostport = urlsplit(url).netloc.rpartition("@")[2]
    if hostport.startswith("["):
        end = hostport.find("]")
        if end == -1:
            raise ValueError(f"missing ']' in host of {url!r}")
        rest = hostport[end + 1 :]
        return hostport[1:end], rest[1:] if rest.startswith(":") else ""
    host, sep, port = hostport.rpartition(":")
    if not sep:
        return hostport, ""
    return host, port


def fake_endpoints_for_url(url: str, namespace: str, name: str, num: int) -> Endpoints:
    """Endpoints with one subset holding ``num`` addresses, all taken from ``url``."""
    return fake_endpoints_for_urls([url] * num, namespace, name)


def fake_endpoints_for_urls(urls: Sequence[str], namespace: str, name: str) -> Endpoints:
    """Endpoints with one subset holding an address and port for each URL.

    Raises ValueError if a URL has no numeric port.
    """
    addresses = []
    ports = []
    for url in urls:
        host, port = _host_and_port(url)
        if not _PORT.fullmatch(port):
            raise ValueError(f"invalid port {port!r} in {url!r}")
        addresses.append(EndpointAddress(ip=host, hostname=host))
        ports.append(EndpointPort(port=int(port)))
    return Endpoints(
        namespace=namespace,
        name=name,
        subsets=(EndpointSubset(addresses=tuple(addresses), ports=tuple(ports)),),
    )


def _key(namespace: str, name: str) -> str:
    return str(NamespacedName(namespace, name))


class FakeEndpointsCache:
    """An in-memory endpoints cache with hand-driven watchers."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: dict[str, Endpoints] = {}
        self._watchers: dict[str, FakeWatcher] = {}

    def get(self, namespace: str, name: str) -> Endpoints:
        """Return the stored endpoints; raise KeyError if there are none."""
        with self._lock:
            try:
                return self._current[_key(namespace, name)]
            except KeyError:
                raise KeyError(f"no endpoints {name} found") from None

    def set(self, endpoints: Endpoints) -> None:
        """Store endpoints without notifying any watcher."""
        with self._lock:
            self._current[_key(endpoints.namespace, endpoints.name)] = endpoints

    def watch(self, namespace: str, name: str) -> FakeWatcher:
        """Return the watcher for these endpoints, creating it if needed."""
        with self._lock:
            return self._watchers.setdefault(_key(namespace, name), FakeWatcher())

    def get_watcher(self, namespace: str, name: str) -> Optional[FakeWatcher]:
        with self._lock:
            return self._watchers.get(_key(namespace, name))

    def set_watcher(self, namespace: str, name: str) -> FakeWatcher:
        """Register and return a fresh watcher, replacing any existing one."""
        watcher = FakeWatcher()
        with self._lock:
            self._watchers[_key(namespace, name)] = watcher
        return watcher

    def set_subsets(self, namespace: str, name: str, num: int) -> None:
        """Replace the subsets of stored endpoints with ``num`` single-address subsets."""
        endpoints = self.get(namespace, name)
        subsets = tuple(
            EndpointSubset(addresses=(EndpointAddress(ip="1.2.3.4"),))
            for _ in range(num)
        )
        self.set(replace(endpoints, subsets=subsets))

    def to_json(self) -> str:
        """JSON object mapping ``namespace/name`` to its number of addresses."""
        with self._lock:
            totals = {
                key: sum(len(subset.addresses) for subset in endpoints.subsets)
                for key, endpoints in self._current.items()
            }
        return json.dumps(totals, sort_keys=True, separators=(",", ":"))