from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_SOURCE = "localhost:6379"
DEFAULT_TARGET = "localhost:6380"


def parse_address(addr: str, default_port: int = 6379) -> tuple[str, int]:
    """``host:port`` -> ``(host, port)``; a bare host gets ``default_port``."""
    addr = addr.strip()
    if not addr:
        raise ValueError("empty address")
    host, sep, port = addr.rpartition(":")
    if not sep:
        return addr, default_port
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        raise ValueError(f"missing host in {addr!r}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid port in {addr!r}") from None
    if not 0 < port_num < 65536:
        raise ValueError(f"port out of range in {addr!r}")
    return host, port_num


@dataclass
class RelayConfig:
    source_host: str = "localhost"
    source_port: int = 6379
    target_host: str = "localhost"
    target_port: int = 6380
    workers: int = 50
    stats_interval: float = 1.0
    poll_interval: float = 0.001
    strict_bootstrap: bool = False
    debug: bool = False
    socket_timeout: float | None = None

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.stats_interval <= 0:
            raise ValueError(f"stats interval must be positive, got {self.stats_interval}")
        if self.poll_interval < 0:
            raise ValueError(f"poll interval must be >= 0, got {self.poll_interval}")

    @property
    def source(self) -> str:
        return f"{self.source_host}:{self.source_port}"

    @property
    def target(self) -> str:
        return f"{self.target_host}:{self.target_port}"

    @classmethod
    def from_addresses(cls, source: str, target: str, **kwargs) -> "RelayConfig":
        source_host, source_port = parse_address(source)
        target_host, target_port = parse_address(target)
        return cls(
            source_host=source_host,
            source_port=source_port,
            target_host=target_host,
            target_port=target_port,
            **kwargs,
        )


def env_default(name: str, fallback: str) -> str:
    """Environment override for a CLI default (``TAPSYNC_SOURCE`` etc)."""
    return os.environ.get(name) or fallback
