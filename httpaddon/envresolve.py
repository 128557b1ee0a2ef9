"""Resolve typed settings from environment variables with strict parsing."""

from __future__ import annotations

import os
import re
from datetime import timedelta
from fractions import Fraction

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_DECIMAL = re.compile(r"[+-]?[0-9]+")
_INT64_LIMIT = 1 << 63

_UNITS = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_NUMBER = re.compile(r"([0-9]*)(?:\.([0-9]*))?")
_UNIT = re.compile(r"[^0-9.]*")


def parse_bool(text: str) -> bool:
    """Parse the accepted spellings of true and false; raise ValueError otherwise."""
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def _atoi(text: str) -> int:
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not -_INT64_LIMIT <= value < _INT64_LIMIT:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``."""
    rest = text
    negative = False
    if rest and rest[0] in "+-":
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    nanos = 0
    pos = 0
    while pos < len(rest):
        head = rest[pos]
        if not (head == "." or "0" <= head <= "9"):
            raise ValueError(f"invalid duration {text!r}")
        number = _NUMBER.match(rest, pos)
        whole, fraction = number.group(1), number.group(2) or ""
        if not whole and not fraction:
            raise ValueError(f"invalid duration {text!r}")
        pos = number.end()

        unit = _UNIT.match(rest, pos).group()
        if not unit:
            raise ValueError(f"missing unit in duration {text!r}")
        if unit not in _UNITS:
            raise ValueError(f"unknown unit {unit!r} in duration {text!r}")
        pos += len(unit)

        value = Fraction(int(whole or "0"))
        if fraction:
            value += Fraction(int(fraction), 10 ** len(fraction))
        nanos += int(value * _UNITS[unit])

    limit = _INT64_LIMIT if negative else _INT64_LIMIT - 1
    if nanos > limit:
        raise ValueError(f"invalid duration {text!r}")
    result = timedelta(microseconds=nanos // 1000)
    return -result if negative else result


def _lookup(env_name: str) -> str | None:
    value = os.environ.get(env_name)
    return value if value else None


def resolve_os_env_bool(env_name: str, default_value: bool) -> bool:
    """Return ``env_name`` as a bool, or ``default_value`` when unset or empty."""
    value = _lookup(env_name)
    return default_value if value is None else parse_bool(value)


def resolve_os_env_int(env_name: str, default_value: int) -> int:
    """Return ``env_name`` as an int, or ``default_value`` when unset or empty."""
    value = _lookup(env_name)
    return default_value if value is None else _atoi(value)


def resolve_os_env_duration(env_name: str) -> timedelta | None:
    """Return ``env_name`` as a duration, or None when unset or empty."""
    value = _lookup(env_name)
    return None if value is None else parse_duration(value)