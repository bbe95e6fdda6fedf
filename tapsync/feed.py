from __future__ import annotations

import logging
import socket
from typing import BinaryIO, Iterator

from tapsync.errors import FeedError

logger = logging.getLogger(__name__)

OK_LINE = "+OK"


def encode_command(args: list[str]) -> bytes:
    out = [f"*{len(args)}\r\n".encode()]
    for arg in args:
        b = arg.encode()
        out.append(f"${len(b)}\r\n".encode())
        out.append(b + b"\r\n")
    return b"".join(out)


class MonitorFeed:
    """Raw TCP connection to the source running ``MONITOR``.

    After the ``+OK`` status line the server writes one text line per
    command it executes. redis-py parses those lines itself, so the tap keeps
    its own socket and hands the untouched text to the parser.
    """

    def __init__(self, host: str, port: int, timeout: float | None = None) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._sock: socket.socket | None = None
        self._reader: BinaryIO | None = None

    def open(self) -> "MonitorFeed":
        try:
            self._sock = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self._sock.settimeout(self.timeout)
            self._sock.sendall(encode_command(["MONITOR"]))
        except OSError as e:
            self.close()
            raise FeedError(f"cannot start MONITOR on {self.host}:{self.port}: {e}") from e
        self._reader = self._sock.makefile("rb")
        logger.info("Monitoring %s:%d", self.host, self.port)
        return self

    def interrupt(self) -> None:
        """Unblock a reader waiting in ``lines`` from another thread."""
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # already disconnected
                pass

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self) -> "MonitorFeed":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def lines(self) -> Iterator[str]:
        """Yield feed lines without the trailing CRLF until the source goes away."""
        if self._reader is None:
            raise FeedError("feed is not open")
        first = True
        while True:
            try:
                raw = self._reader.readline()
            except (OSError, ValueError) as e:
                raise FeedError(f"read from {self.host}:{self.port} failed: {e}") from e
            if not raw:
                raise FeedError("connection closed")
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if first and line.startswith("-"):
                raise FeedError(f"MONITOR refused: {line[1:]}")
            first = False
            yield line
