"""Routing keys built from hosts and path prefixes, and the targets they route to."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlsplit

Key = str


@dataclass
class RouteTarget:
    """A scaled HTTP workload: where its traffic comes from and how it scales."""

    namespace: str = ""
    name: str = ""
    hosts: Optional[list[str]] = None
    path_prefixes: Optional[list[str]] = None
    creation_timestamp: Optional[datetime] = None
    target_pending_requests: Optional[int] = None
    min_replicas: Optional[int] = None
    max_replicas: Optional[int] = None
    rate_window: Optional[timedelta] = None
    rate_granularity: Optional[timedelta] = None

    def copy(self) -> RouteTarget:
        """Return a deep copy that shares no mutable state with this target."""
        return deepcopy(self)


def new_key(host: str, path: str) -> Key:
    """Normalise a host (port dropped) and path into a ``//host/path/`` key."""
    colon = host.rfind(":")
    if colon != -1:
        host = host[:colon]
    path = path.strip("/")
    if path:
        path += "/"
    return f"//{host}/{path}"


def _host_of(netloc: str) -> str:
    return netloc.rpartition("@")[2]


def new_key_from_url(url: Optional[str]) -> Optional[Key]:
    """The key for a URL's host and path, or None for no URL."""
    if url is None:
        return None
    parts = urlsplit(url)
    return new_key(_host_of(parts.netloc), parts.path)


def new_key_from_request(url: Optional[str], host: str = "") -> Optional[Key]:
    """The key for a request; a non-empty ``host`` header overrides the URL's host."""
    if url is None:
        return None
    parts = urlsplit(url)
    return new_key(host or _host_of(parts.netloc), parts.path)


def new_keys_from_target(target: Optional[RouteTarget]) -> Optional[list[Key]]:
    """Keys pairing each host with the path prefix at the same position."""
    if target is None:
        return None
    hosts = target.hosts if target.hosts is not None else [""]
    prefixes = target.path_prefixes if target.path_prefixes is not None else [""]
    return [new_key(host, prefix) for host, prefix in zip(hosts, prefixes)]