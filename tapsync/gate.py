from __future__ import annotations

import logging
import threading
from typing import Any

import redis

from tapsync.errors import ReadinessProbeError

logger = logging.getLogger(__name__)

PRIMARY_ROLE = "master"


def parse_role(info: Any) -> str | None:
    """Return the ``role`` from an ``INFO replication`` reply.

    redis-py hands back a dict; the raw bulk-string form (``role:master``
    among other ``key:value`` lines) is understood as well.
    """
    if isinstance(info, dict):
        role = info.get("role")
        if isinstance(role, bytes):
            role = role.decode()
        return role.strip() if isinstance(role, str) else None
    if isinstance(info, bytes):
        info = info.decode("utf-8", errors="replace")
    if isinstance(info, str):
        for line in info.split("\n"):
            if line.startswith("role:"):
                return line[5:].strip()
    return None


class ReadinessGate:
    """One-shot flag that opens once the destination is writable.

    NotReady -> Ready, no way back. Backed by ``threading.Event`` so the
    transition is visible to every thread that checks ``is_ready``.
    """

    def __init__(self) -> None:
        self._ready = threading.Event()
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def open(self) -> bool:
        """Mark the destination writable; True only for the first call."""
        with self._lock:
            if self._ready.is_set():
                return False
            self._ready.set()
        logger.warning("Target is master - starting writes")
        return True

    def wait(self, timeout: float | None = None) -> bool:
        return self._ready.wait(timeout)

    def poll(self, client: redis.Redis, stop: threading.Event, interval: float = 0.001) -> bool:
        """Poll ``INFO replication`` until the role is master.

        Returns True once the gate is open, False if ``stop`` was set first.
        Transport errors are fatal and raised as ``ReadinessProbeError``.
        """
        last_role = None
        while not stop.is_set():
            try:
                info = client.info("replication")
            except (redis.exceptions.RedisError, OSError) as e:
                raise ReadinessProbeError(f"INFO replication failed: {e}") from e
            role = parse_role(info)
            if role == PRIMARY_ROLE:
                self.open()
                return True
            if role != last_role:
                logger.info("Target role is %s, waiting for promotion", role)
                last_role = role
            if interval > 0:
                stop.wait(interval)
        return False
