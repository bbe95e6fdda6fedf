from __future__ import annotations

import logging

import pytest
import redis

from tapsync.classifier import WriteCommandSet, load_write_commands
from tapsync.errors import BootstrapError

from _fakes import FakeSource, catalog

WRITES = ["set", "hmset", "hset", "lpush", "zadd", "sadd", "append"]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("SET", True),
        ("set", True),
        ("Set", True),
        ("HSET", True),
        ("Get", False),
        ("LPUSH", True),
        ("ZADD", True),
        ("DEL", False),
        ("APPEND", True),
        ("hgetall", False),
    ],
)
def test_is_write_case_insensitive(name, expected):
    assert WriteCommandSet(WRITES).is_write(name) is expected


def test_empty_set_classifies_nothing():
    ws = WriteCommandSet()
    assert len(ws) == 0
    assert not ws.is_write("set")


def test_from_parsed_catalog():
    ws = WriteCommandSet.from_catalog(catalog("set", "del", read=("get", "ping")))
    assert sorted(ws) == ["del", "set"]
    assert "SET" in ws
    assert "get" not in ws


def test_from_raw_catalog_with_bytes():
    raw = [
        [b"set", -3, [b"write", b"denyoom"], 1, 1, 1],
        [b"get", 2, [b"readonly", b"fast"], 1, 1, 1],
        [b"incr", 2, [b"write", b"fast"], 1, 1, 1],
    ]
    assert sorted(WriteCommandSet.from_catalog(raw)) == ["incr", "set"]


def test_malformed_catalog_entry():
    with pytest.raises(BootstrapError):
        WriteCommandSet.from_catalog([["set", -3]])
    with pytest.raises(BootstrapError):
        WriteCommandSet.from_catalog("nope")


def test_load_write_commands(caplog):
    with caplog.at_level(logging.INFO, logger="tapsync.classifier"):
        ws = load_write_commands(FakeSource(catalog("set", "lpush")))
    assert sorted(ws) == ["lpush", "set"]
    assert "Write commands: lpush, set" in caplog.text


def test_load_failure_falls_back_to_empty(caplog):
    source = FakeSource(error=redis.exceptions.ConnectionError("refused"))
    with caplog.at_level(logging.ERROR, logger="tapsync.classifier"):
        ws = load_write_commands(source)
    assert len(ws) == 0
    assert "refused" in caplog.text


def test_load_failure_strict():
    source = FakeSource(error=redis.exceptions.ConnectionError("refused"))
    with pytest.raises(BootstrapError, match="refused"):
        load_write_commands(source, strict=True)


def test_no_write_commands_warns_or_fails(caplog):
    with caplog.at_level(logging.WARNING, logger="tapsync.classifier"):
        assert len(load_write_commands(FakeSource(catalog()))) == 0
    assert "nothing will be replicated" in caplog.text
    with pytest.raises(BootstrapError):
        load_write_commands(FakeSource(catalog()), strict=True)
