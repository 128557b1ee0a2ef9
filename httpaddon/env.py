"""Read configuration values from environment variables."""

from __future__ import annotations

import os
import re

_DECIMAL = re.compile(r"[+-]?[0-9]+")


def _parse_int(text: str, bits: int) -> int:
    """Parse a base-10 integer that must fit in a signed integer of ``bits`` bits."""
    if not _DECIMAL.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def get(env_name: str) -> str:
    """Return the value of ``env_name``; raise KeyError if it is unset or empty."""
    value = os.environ.get(env_name, "")
    if value == "":
        raise KeyError(f"environment variable {env_name} not found")
    return value


def get_or(env_name: str, otherwise: str) -> str:
    """Return the value of ``env_name``, or ``otherwise`` if it is unset or empty."""
    try:
        return get(env_name)
    except KeyError:
        return otherwise


def get_int32_or(env_name: str, otherwise: int) -> int:
    """Return ``env_name`` as a 32-bit integer, or ``otherwise`` if missing or invalid."""
    try:
        return _parse_int(get(env_name), 32)
    except (KeyError, ValueError):
        return otherwise


def get_int_or(env_name: str, otherwise: int) -> int:
    """Return ``env_name`` as a 64-bit integer, or ``otherwise`` if missing or invalid."""
    try:
        return _parse_int(get(env_name), 64)
    except (KeyError, ValueError):
        return otherwise