"""Namespace-qualified object names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


class _Named(Protocol):
    namespace: str
    name: str


@dataclass(frozen=True, order=True)
class NamespacedName:
    namespace: str = ""
    name: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def namespaced_name_from_object(obj: Optional[_Named]) -> Optional[NamespacedName]:
    """The namespaced name of an object with ``namespace`` and ``name``, or None."""
    if obj is None:
        return None
    return NamespacedName(namespace=obj.namespace, name=obj.name)