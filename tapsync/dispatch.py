from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

import redis

from tapsync.classifier import WriteCommandSet
from tapsync.parser import command_args, parse_command
from tapsync.stats import CounterTable

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 50

_STOP = object()


class Dispatcher:
    """Fan raw MONITOR lines out to a fixed pool of forwarding threads.

    The handoff queue holds a single item, so ``submit`` blocks until a worker
    is free to take the line. Workers pull independently; with more than one
    worker the destination may apply two consecutive source commands in
    either order. Use ``workers=1`` when source order matters.
    """

    def __init__(
        self,
        destination: redis.Redis,
        write_commands: WriteCommandSet,
        counters: CounterTable,
        workers: int = DEFAULT_WORKERS,
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.destination = destination
        self.write_commands = write_commands
        self.counters = counters
        self.workers = workers
        self.on_failure = on_failure
        self._queue: queue.Queue = queue.Queue(maxsize=1)
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        for i in range(self.workers):
            t = threading.Thread(target=self._work, name=f"tapsync-worker-{i}", daemon=True)
            t.start()
            self._threads.append(t)
        logger.debug("Started %d workers", self.workers)

    def submit(self, line: str, timeout: float | None = None) -> None:
        self._queue.put(line, timeout=timeout)

    def handle(self, line: str) -> bool:
        """Forward ``line`` if it carries a write command.

        Returns True when a forward was attempted. Destination errors are
        absorbed; the attempt is counted either way.
        """
        args = command_args(parse_command(line))
        if args is None or not self.write_commands.is_write(args[0]):
            return False
        try:
            self.destination.execute_command(*args)
        except Exception as e:
            # replies are never read; any failure, including reply decoding, is absorbed
            logger.debug("Forward of %s failed: %s", args[0], e)
        self.counters.increment(args[0])
        return True

    def _work(self) -> None:
        while True:
            line = self._queue.get()
            if line is _STOP:
                return
            try:
                self.handle(line)
            except Exception as e:
                logger.exception("Worker %s crashed", threading.current_thread().name)
                if self.on_failure is not None:
                    self.on_failure(e)
                return

    def stop(self, timeout: float = 5.0) -> None:
        alive = [t for t in self._threads if t.is_alive()]
        for _ in alive:
            try:
                self._queue.put(_STOP, timeout=timeout)
            except queue.Full:
                break
        for t in alive:
            t.join(timeout)
        self._threads = []
