from __future__ import annotations


class TapsyncError(Exception):
    """Base class for the fatal conditions of a relay run."""


class BootstrapError(TapsyncError):
    """The write-command catalog could not be loaded from the source."""


class FeedError(TapsyncError):
    """The MONITOR feed failed or was closed by the source."""


class ReadinessProbeError(TapsyncError):
    """The destination role could not be read while waiting for promotion."""
