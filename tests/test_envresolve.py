from datetime import timedelta

import pytest

from httpaddon.envresolve import (
    parse_bool,
    parse_duration,
    resolve_os_env_bool,
    resolve_os_env_duration,
    resolve_os_env_int,
)


def test_resolve_missing_os_env_bool(monkeypatch):
    monkeypatch.delenv("missing_bool", raising=False)
    assert resolve_os_env_bool("missing_bool", True) is True
    monkeypatch.setenv("empty_bool", "")
    assert resolve_os_env_bool("empty_bool", True) is True


@pytest.mark.parametrize("raw", ["    ", "deux heures"])
def test_resolve_invalid_os_env_bool(monkeypatch, raw):
    monkeypatch.setenv("invalid_bool", raw)
    with pytest.raises(ValueError):
        resolve_os_env_bool("invalid_bool", True)


def test_resolve_valid_os_env_bool(monkeypatch):
    monkeypatch.setenv("valid_bool", "true")
    assert resolve_os_env_bool("valid_bool", False) is True
    monkeypatch.setenv("valid_bool", "false")
    assert resolve_os_env_bool("valid_bool", True) is False


def test_resolve_missing_os_env_int(monkeypatch):
    monkeypatch.delenv("missing_int", raising=False)
    assert resolve_os_env_int("missing_int", 1) == 1
    monkeypatch.setenv("empty_int", "")
    assert resolve_os_env_int("empty_int", 1) == 1


@pytest.mark.parametrize("raw", ["    ", "deux heures"])
def test_resolve_invalid_os_env_int(monkeypatch, raw):
    monkeypatch.setenv("invalid_int", raw)
    with pytest.raises(ValueError):
        resolve_os_env_int("invalid_int", 1)


def test_resolve_valid_os_env_int(monkeypatch):
    monkeypatch.setenv("valid_int", "2")
    assert resolve_os_env_int("valid_int", 1) == 2


def test_resolve_missing_os_env_duration(monkeypatch):
    monkeypatch.delenv("missing_duration", raising=False)
    assert resolve_os_env_duration("missing_duration") is None
    monkeypatch.setenv("empty_duration", "")
    assert resolve_os_env_duration("empty_duration") is None


@pytest.mark.parametrize("raw", ["    ", "deux heures"])
def test_resolve_invalid_os_env_duration(monkeypatch, raw):
    monkeypatch.setenv("invalid_duration", raw)
    with pytest.raises(ValueError):
        resolve_os_env_duration("invalid_duration")


def test_resolve_valid_os_env_duration(monkeypatch):
    monkeypatch.setenv("valid_duration_seconds", "8s")
    assert resolve_os_env_duration("valid_duration_seconds") == timedelta(seconds=8)
    monkeypatch.setenv("valid_duration_minutes", "30m")
    assert resolve_os_env_duration("valid_duration_minutes") == timedelta(minutes=30)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0", timedelta(0)),
        ("-0", timedelta(0)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(seconds=1.5)),
        ("-2s", timedelta(seconds=-2)),
        ("+5m", timedelta(minutes=5)),
        ("300ms", timedelta(milliseconds=300)),
        ("10us", timedelta(microseconds=10)),
        ("10\u00b5s", timedelta(microseconds=10)),
        ("5.s", timedelta(seconds=5)),
        (".5s", timedelta(milliseconds=500)),
    ],
)
def test_parse_duration_values(raw, expected):
    assert parse_duration(raw) == expected


@pytest.mark.parametrize("raw", ["", "5", "5x", ".s", "-", "1h 2m", "s"])
def test_parse_duration_errors(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_parse_duration_overflow():
    with pytest.raises(ValueError):
        parse_duration("9223372036854775808ns")


@pytest.mark.parametrize("raw", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true(raw):
    assert parse_bool(raw) is True


@pytest.mark.parametrize("raw", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false(raw):
    assert parse_bool(raw) is False


@pytest.mark.parametrize("raw", ["yes", "tRUE", " true", ""])
def test_parse_bool_rejects(raw):
    with pytest.raises(ValueError):
        parse_bool(raw)