"""tapsync -- Mirror live write traffic from one Redis-compatible server to another.

Purpose
    Keeps a target instance in step with a source by tapping the source's
    MONITOR feed and replaying every write command it sees.  Meant for
    migrations: run it until the target has been promoted (e.g. after a
    failover), then retire it.

What it does
    1. Asks the source for its command catalog (COMMAND) and keeps the
       names flagged ``write``.
    2. Opens a raw TCP connection to the source and issues MONITOR.
    3. Polls ``INFO replication`` on the target until it reports
       ``role:master``.  Until then every feed line is dropped.
    4. Hands each feed line to a pool of worker threads; each worker parses
       the line and, for write commands, replays it on the target.
    5. Logs per-command and overall counts once per stats interval.

How to run
        tapsync --source 127.0.0.1:6379 --target 127.0.0.1:6380

    or ``python3 -m tapsync`` with the same flags.

    Optional flags:
        --workers N            Forwarding threads (default: 50; 1 keeps
                               source order)
        --stats-interval SEC   Seconds between stats lines (default: 1)
        --poll-interval SEC    Delay between readiness polls (default: 0.001)
        --strict-bootstrap     Exit if the write-command catalog can't be
                               loaded instead of replicating nothing
        --debug                Debug logging
        --sourceHost / --targetHost   Aliases for --source / --target

Configuration (env vars)
    TAPSYNC_SOURCE    Default for --source.
    TAPSYNC_TARGET    Default for --target.
    TAPSYNC_WORKERS   Default for --workers.

Delivery
    At-most-once and best effort.  Commands seen before the target is
    ready are lost, failed replays are not retried, and with more than one
    worker two writes may land on the target in a different order.

Exit codes
    0   Stopped cleanly (Ctrl-C).
    1   Fatal error: feed lost, readiness probe failed, strict bootstrap
        failed.
    2   Bad command line.
"""
from __future__ import annotations

import argparse
import logging
import signal

import redis

from tapsync.config import DEFAULT_SOURCE, DEFAULT_TARGET, RelayConfig, env_default
from tapsync.errors import TapsyncError
from tapsync.feed import MonitorFeed
from tapsync.log import setup_logging
from tapsync.relay import Relay

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="tapsync", description="Replicate write commands seen by MONITOR")
    ap.add_argument(
        "--source",
        "--sourceHost",
        dest="source",
        default=env_default("TAPSYNC_SOURCE", DEFAULT_SOURCE),
        help="source host:port (default: %(default)s)",
    )
    ap.add_argument(
        "--target",
        "--targetHost",
        dest="target",
        default=env_default("TAPSYNC_TARGET", DEFAULT_TARGET),
        help="target host:port (default: %(default)s)",
    )
    ap.add_argument("--workers", type=int, default=env_default("TAPSYNC_WORKERS", "50"))
    ap.add_argument("--stats-interval", type=float, default=1.0)
    ap.add_argument("--poll-interval", type=float, default=0.001)
    ap.add_argument("--strict-bootstrap", action="store_true")
    ap.add_argument("--debug", action="store_true")
    return ap


def config_from_args(args: argparse.Namespace) -> RelayConfig:
    return RelayConfig.from_addresses(
        args.source,
        args.target,
        workers=args.workers,
        stats_interval=args.stats_interval,
        poll_interval=args.poll_interval,
        strict_bootstrap=args.strict_bootstrap,
        debug=args.debug,
    )


def destination_client(config: RelayConfig) -> redis.Redis:
    # raw replies: forwarded commands may return binary values that are never read
    return redis.Redis(
        host=config.target_host,
        port=config.target_port,
        db=0,
        decode_responses=False,
        max_connections=config.workers + 2,
    )


def build_relay(config: RelayConfig) -> Relay:
    source = redis.Redis(host=config.source_host, port=config.source_port, db=0, decode_responses=True)
    destination = destination_client(config)
    feed = MonitorFeed(config.source_host, config.source_port, timeout=config.socket_timeout)
    return Relay(config, feed, source, destination)


def main(argv: list[str] | None = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as e:
        ap.error(str(e))

    setup_logging(config.debug)
    relay = build_relay(config)

    def on_signal(signum, frame):
        logger.info("Received signal %d, stopping", signum)
        relay.stop()

    signal.signal(signal.SIGINT, on_signal)
    signal.signal(signal.SIGTERM, on_signal)

    try:
        return relay.run()
    except TapsyncError as e:
        logger.critical("%s", e)
        return 1
    except Exception:
        logger.critical("Relay crashed", exc_info=True)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
