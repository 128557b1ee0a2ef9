"""An immutable routing table from keys and names to route targets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Optional

from .names import NamespacedName, namespaced_name_from_object
from .routekey import Key, RouteTarget, new_keys_from_target


def _empty() -> Mapping:
    return MappingProxyType({})


def _is_after(a: Optional[datetime], b: Optional[datetime]) -> bool:
    """Whether ``a`` is later than ``b``; an unset time is the earliest time."""
    if a is None:
        return False
    if b is None:
        return True
    return a > b


@dataclass(frozen=True)
class TableMemory:
    """Targets indexed by namespaced name and stored by routing key.

    Every change returns a new TableMemory and leaves this one untouched.
    """

    index: Mapping[str, RouteTarget] = field(default_factory=_empty)
    store: Mapping[Key, RouteTarget] = field(default_factory=_empty)

    def __post_init__(self) -> None:
        object.__setattr__(self, "index", MappingProxyType(dict(self.index)))
        object.__setattr__(self, "store", MappingProxyType(dict(self.store)))

    def remember(self, target: Optional[RouteTarget]) -> TableMemory:
        """Add a copy of ``target``; on key conflicts the oldest target wins."""
        if target is None:
            return self
        target = target.copy()

        index = dict(self.index)
        index[str(namespaced_name_from_object(target))] = target

        store = dict(self.store)
        for key in new_keys_from_target(target):
            old = store.get(key)
            if old is not None and _is_after(
                target.creation_timestamp, old.creation_timestamp
            ):
                continue
            store[key] = target

        return TableMemory(index=index, store=store)

    def recall(self, namespaced_name: Optional[NamespacedName]) -> Optional[RouteTarget]:
        """A copy of the target with this name, or None."""
        if namespaced_name is None:
            return None
        target = self.index.get(str(namespaced_name))
        return None if target is None else target.copy()

    def forget(self, namespaced_name: Optional[NamespacedName]) -> Optional[TableMemory]:
        """Drop the named target and the keys it still owns."""
        if namespaced_name is None:
            return None
        index = dict(self.index)
        target = index.pop(str(namespaced_name), None)
        if target is None:
            return self

        store = dict(self.store)
        for key in new_keys_from_target(target):
            owner = namespaced_name_from_object(store.get(key))
            if owner is None or owner != namespaced_name:
                continue
            del store[key]

        return TableMemory(index=index, store=store)

    def route(self, key: Optional[Key]) -> Optional[RouteTarget]:
        """The target stored under the longest key that prefixes ``key``."""
        if key is None:
            return None
        for end in range(len(key), -1, -1):
            target = self.store.get(key[:end])
            if target is not None:
                return target
        return None