"""Live MONITOR-tap write replication between Redis-compatible servers."""
from __future__ import annotations

from tapsync.classifier import WriteCommandSet, load_write_commands
from tapsync.config import RelayConfig
from tapsync.dispatch import Dispatcher
from tapsync.errors import BootstrapError, FeedError, ReadinessProbeError, TapsyncError
from tapsync.feed import MonitorFeed
from tapsync.gate import ReadinessGate
from tapsync.parser import command_args, parse_command
from tapsync.relay import Relay
from tapsync.stats import CounterTable, StatsReport, StatsReporter

__version__ = "0.1.0"

__all__ = [
    "BootstrapError",
    "CounterTable",
    "Dispatcher",
    "FeedError",
    "MonitorFeed",
    "ReadinessGate",
    "ReadinessProbeError",
    "Relay",
    "RelayConfig",
    "StatsReport",
    "StatsReporter",
    "TapsyncError",
    "WriteCommandSet",
    "command_args",
    "load_write_commands",
    "parse_command",
]
