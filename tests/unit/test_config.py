from __future__ import annotations

import pytest

from tapsync.config import RelayConfig, parse_address


@pytest.mark.parametrize(
    "addr,expected",
    [
        ("localhost:6379", ("localhost", 6379)),
        ("10.0.0.5:7000", ("10.0.0.5", 7000)),
        ("redis.internal", ("redis.internal", 6379)),
        ("[::1]:6380", ("::1", 6380)),
    ],
)
def test_parse_address(addr, expected):
    assert parse_address(addr) == expected


@pytest.mark.parametrize("addr", ["", ":6379", "host:port", "host:70000"])
def test_parse_address_rejects(addr):
    with pytest.raises(ValueError):
        parse_address(addr)


def test_from_addresses():
    cfg = RelayConfig.from_addresses("a:1", "b:2", workers=4)
    assert (cfg.source, cfg.target, cfg.workers) == ("a:1", "b:2", 4)
    assert cfg.stats_interval == 1.0
    assert not cfg.strict_bootstrap


@pytest.mark.parametrize(
    "kwargs",
    [{"workers": 0}, {"stats_interval": 0}, {"poll_interval": -1}],
)
def test_validation(kwargs):
    with pytest.raises(ValueError):
        RelayConfig(**kwargs)
