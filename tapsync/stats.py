from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading

logger = logging.getLogger(__name__)


class CounterTable:
    """Per-command counters shared by every worker.

    One lock guards the whole table; it is held only for the dict update, so
    ``drain`` reads and zeroes all entries without losing a racing increment.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counts: dict[str, int] = {}

    def increment(self, name: str, n: int = 1) -> None:
        key = name.lower()
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + n

    def get(self, name: str) -> int:
        with self._lock:
            return self._counts.get(name.lower(), 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)

    def drain(self) -> dict[str, int]:
        with self._lock:
            drained = dict(self._counts)
            for key in self._counts:
                self._counts[key] = 0
        return drained


@dataclass
class StatsReport:
    counts: dict[str, int] = field(default_factory=dict)
    total: int = 0
    overall: int = 0

    def fields(self) -> dict[str, int]:
        out = dict(self.counts)
        out["overall"] = self.overall
        return out


def _interval_text(interval: float) -> str:
    if interval == 1:
        return "second"
    return f"{interval:g} seconds"


class StatsReporter:
    def __init__(self, counters: CounterTable, interval: float = 1.0) -> None:
        self.counters = counters
        self.interval = interval
        self.overall = 0

    def tick(self) -> StatsReport:
        counts = self.counters.drain()
        total = sum(counts.values())
        self.overall += total
        report = StatsReport(counts=counts, total=total, overall=self.overall)
        logger.info(
            "Processed %d total commands in the last %s",
            total,
            _interval_text(self.interval),
            extra={"fields": report.fields()},
        )
        return report

    def run(self, stop: threading.Event) -> None:
        # log first, then wait out the interval
        while not stop.is_set():
            self.tick()
            stop.wait(self.interval)
