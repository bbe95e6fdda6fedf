from __future__ import annotations

import logging
import threading

from tapsync.stats import CounterTable, StatsReporter


def test_concurrent_increments_then_drain():
    counters = CounterTable()
    threads_n, per_thread = 8, 1000

    def work():
        for _ in range(per_thread):
            counters.increment("SET")

    threads = [threading.Thread(target=work) for _ in range(threads_n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert counters.drain() == {"set": threads_n * per_thread}
    assert counters.get("set") == 0


def test_drain_racing_increments_loses_nothing():
    counters = CounterTable()
    stop = threading.Event()
    seen = []

    def drainer():
        while not stop.is_set():
            seen.append(counters.drain().get("incr", 0))

    d = threading.Thread(target=drainer)
    d.start()
    for _ in range(5000):
        counters.increment("incr")
    stop.set()
    d.join()
    seen.append(counters.drain().get("incr", 0))
    assert sum(seen) == 5000


def test_entries_are_lazy_and_persist_after_drain():
    counters = CounterTable()
    assert counters.snapshot() == {}
    counters.increment("hset", 3)
    counters.drain()
    assert counters.snapshot() == {"hset": 0}


def test_reporter_accumulates_overall(caplog):
    counters = CounterTable()
    reporter = StatsReporter(counters)
    counters.increment("set")
    counters.increment("set")
    counters.increment("lpush")

    with caplog.at_level(logging.INFO, logger="tapsync.stats"):
        first = reporter.tick()
    assert first.total == 3
    assert first.fields() == {"set": 2, "lpush": 1, "overall": 3}
    assert "Processed 3 total commands" in caplog.text
    assert caplog.records[-1].fields == {"set": 2, "lpush": 1, "overall": 3}

    counters.increment("set")
    second = reporter.tick()
    assert second.counts == {"set": 1, "lpush": 0}
    assert second.total == 1
    assert second.overall == 4


def test_reporter_run_stops():
    reporter = StatsReporter(CounterTable(), interval=0.01)
    stop = threading.Event()
    t = threading.Thread(target=reporter.run, args=(stop,))
    t.start()
    stop.set()
    t.join(2)
    assert not t.is_alive()


def test_report_names_the_interval(caplog):
    counters = CounterTable()
    counters.increment("set")
    with caplog.at_level(logging.INFO, logger="tapsync.stats"):
        StatsReporter(counters, interval=0.5).tick()
        StatsReporter(counters).tick()
    assert "Processed 1 total commands in the last 0.5 seconds" in caplog.messages
    assert "Processed 0 total commands in the last second" in caplog.messages
