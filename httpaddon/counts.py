"""Snapshots of pending-request concurrency and request rate per host."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Count:
    """Pending requests (concurrency) and requests per second for one host."""

    concurrency: int = 0
    rps: float = 0.0


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _field(entry: dict[str, Any], name: str) -> Any:
    for key, value in entry.items():
        if key.lower() == name:
            return value
    return None


def _count_from_json(host: str, entry: Any) -> Count:
    if entry is None:
        return Count()
    if not isinstance(entry, dict):
        raise ValueError(f"count for {host!r} is not an object")
    concurrency = _field(entry, "concurrency")
    rps = _field(entry, "rps")
    if concurrency is None:
        concurrency = 0
    if rps is None:
        rps = 0.0
    if isinstance(concurrency, bool) or not isinstance(concurrency, int):
        raise ValueError(f"concurrency for {host!r} is not an integer")
    if isinstance(rps, bool) or not isinstance(rps, (int, float)):
        raise ValueError(f"rps for {host!r} is not a number")
    return Count(concurrency=concurrency, rps=float(rps))


@dataclass
class Counts:
    """Per-host counts, serialisable to and from JSON."""

    counts: dict[str, Count] = field(default_factory=dict)

    def aggregate(self) -> Count:
        """Total concurrency and rate across all hosts."""
        return Count(
            concurrency=sum(c.concurrency for c in self.counts.values()),
            rps=sum((c.rps for c in self.counts.values()), 0.0),
        )

    def to_json(self) -> str:
        return json.dumps(
            {
                host: {"Concurrency": count.concurrency, "RPS": count.rps}
                for host, count in self.counts.items()
            },
            allow_nan=False,
        )

    @classmethod
    def from_json(cls, data: Union[str, bytes]) -> Counts:
        """Parse the JSON produced by :meth:`to_json`; raise ValueError if malformed."""
        parsed = json.loads(data)
        if parsed is None:
            return cls()
        if not isinstance(parsed, dict):
            raise ValueError("queue counts must be a JSON object")
        return cls({host: _count_from_json(host, entry) for host, entry in parsed.items()})

    def __str__(self) -> str:
        items = " ".join(
            f"{host}:{{{count.concurrency} {_format_float(count.rps)}}}"
            for host, count in sorted(self.counts.items())
        )
        return f"map[{items}]"