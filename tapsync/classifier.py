from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

import redis

from tapsync.errors import BootstrapError

logger = logging.getLogger(__name__)

WRITE_FLAG = "write"


def _to_text(v: str | bytes) -> str:
    if isinstance(v, bytes):
        return v.decode("utf-8", errors="replace")
    return str(v)


class WriteCommandSet:
    """Lower-cased names of the commands that mutate state.

    Built once before the workers start and never changed afterwards, so
    workers read it without locking.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names = frozenset(_to_text(n).lower() for n in names)

    @classmethod
    def from_catalog(cls, catalog: Any) -> "WriteCommandSet":
        """Select write commands from a ``COMMAND`` reply.

        redis-py parses the reply into ``{name: {"flags": [...], ...}}``; the
        unparsed RESP shape ``[[name, arity, [flags...], ...], ...]`` is
        accepted too.
        """
        names: list[str] = []
        if isinstance(catalog, dict):
            for name, info in catalog.items():
                flags = info.get("flags", []) if isinstance(info, dict) else []
                if any(_to_text(f) == WRITE_FLAG for f in flags):
                    names.append(_to_text(name))
        elif isinstance(catalog, (list, tuple)):
            for entry in catalog:
                if not isinstance(entry, (list, tuple)) or len(entry) < 3:
                    raise BootstrapError(f"malformed COMMAND entry: {entry!r}")
                if any(_to_text(f) == WRITE_FLAG for f in entry[2] or []):
                    names.append(_to_text(entry[0]))
        else:
            raise BootstrapError(f"unexpected COMMAND reply type {type(catalog).__name__}")
        return cls(names)

    def is_write(self, name: str) -> bool:
        return name.lower() in self._names

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.is_write(name)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"WriteCommandSet({len(self._names)} commands)"


def load_write_commands(client: redis.Redis, strict: bool = False) -> WriteCommandSet:
    """Ask the source for its command catalog and keep the write commands.

    A failure is logged and yields an empty set (nothing replicates) unless
    ``strict`` is set, in which case ``BootstrapError`` is raised.
    """
    try:
        write_commands = WriteCommandSet.from_catalog(client.command())
    except (redis.exceptions.RedisError, OSError, BootstrapError) as e:
        if strict:
            if isinstance(e, BootstrapError):
                raise
            raise BootstrapError(f"COMMAND failed: {e}") from e
        logger.error("Error loading write commands: %s", e)
        return WriteCommandSet()

    if not write_commands:
        if strict:
            raise BootstrapError("source reported no write commands")
        logger.warning("Source reported no write commands; nothing will be replicated")
    else:
        logger.info("Write commands: %s", ", ".join(write_commands))
    return write_commands
