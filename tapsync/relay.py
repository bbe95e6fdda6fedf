from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Callable, Iterable

import redis

from tapsync.classifier import WriteCommandSet, load_write_commands
from tapsync.config import RelayConfig
from tapsync.dispatch import Dispatcher
from tapsync.errors import FeedError
from tapsync.feed import OK_LINE, MonitorFeed
from tapsync.gate import ReadinessGate
from tapsync.stats import CounterTable, StatsReporter

logger = logging.getLogger(__name__)

_SUBMIT_WAIT = 0.1
_JOIN_TIMEOUT = 5.0


class Relay:
    """Reads the source MONITOR feed and forwards write commands.

    Three loops run side by side: the feed reader (on the thread calling
    ``run``), the readiness poller and the stats ticker. Whichever fails
    first reports into ``_failures``; that stops the others and ``run``
    re-raises the error. Lines read while the gate is closed are dropped.
    """

    def __init__(
        self,
        config: RelayConfig,
        feed: MonitorFeed,
        source: redis.Redis,
        destination: redis.Redis,
        gate: ReadinessGate | None = None,
        counters: CounterTable | None = None,
    ) -> None:
        self.config = config
        self.feed = feed
        self.source = source
        self.destination = destination
        self.gate = gate if gate is not None else ReadinessGate()
        self.counters = counters if counters is not None else CounterTable()
        self.reporter = StatsReporter(self.counters, config.stats_interval)
        self.dispatcher: Dispatcher | None = None
        self.discarded = 0
        self._stop = threading.Event()
        self._failures: queue.Queue = queue.Queue()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()
        self.feed.interrupt()

    def _fail(self, exc: BaseException) -> None:
        self._failures.put(exc)
        self.stop()

    def prepare(self, write_commands: WriteCommandSet | None = None) -> Dispatcher:
        """Load the write-command set, then start the workers."""
        if write_commands is None:
            write_commands = load_write_commands(self.source, strict=self.config.strict_bootstrap)
        self.dispatcher = Dispatcher(
            self.destination,
            write_commands,
            self.counters,
            workers=self.config.workers,
            on_failure=self._fail,
        )
        self.dispatcher.start()
        return self.dispatcher

    def _submit(self, line: str) -> bool:
        if self.dispatcher is None:
            raise RuntimeError("dispatcher not started; call prepare() first")
        while True:
            try:
                self.dispatcher.submit(line, timeout=_SUBMIT_WAIT)
                return True
            except queue.Full:
                if self._stop.is_set():
                    return False

    def consume(self, lines: Iterable[str]) -> int:
        """Feed reader loop; returns how many lines went to the workers."""
        enqueued = 0
        for line in lines:
            if self._stop.is_set():
                break
            if line == OK_LINE:
                logger.debug("OK")
                continue
            if not self.gate.is_ready:
                self.discarded += 1
                continue
            if not line:
                continue
            if not self._submit(line):
                break
            enqueued += 1
        return enqueued

    def _spawn(self, name: str, target: Callable[..., Any], *args: Any) -> threading.Thread:
        def runner() -> None:
            try:
                target(*args)
            except Exception as e:
                self._fail(e)

        t = threading.Thread(target=runner, name=name, daemon=True)
        t.start()
        return t

    def run(self) -> int:
        logger.info("Replicating %s -> %s", self.config.source, self.config.target)
        self.prepare()
        threads = [
            self._spawn(
                "tapsync-readiness",
                self.gate.poll,
                self.destination,
                self._stop,
                self.config.poll_interval,
            ),
            self._spawn("tapsync-stats", self.reporter.run, self._stop),
        ]
        try:
            with self.feed:
                self.consume(self.feed.lines())
        except FeedError as e:
            # a requested stop shuts the socket under the reader
            if not self._stop.is_set():
                self._fail(e)
        finally:
            self._stop.set()
            if self.dispatcher is not None:
                self.dispatcher.stop(_JOIN_TIMEOUT)
            for t in threads:
                t.join(_JOIN_TIMEOUT)

        try:
            exc = self._failures.get_nowait()
        except queue.Empty:
            logger.info("Stopped; %d lines discarded before the target was ready", self.discarded)
            return 0
        raise exc
