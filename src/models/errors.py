"""
Error types raised by the detection pipeline.

Input problems (empty paths, unreadable or empty images) are reported with
the built-in ValueError.
"""


class NetworkLoadError(RuntimeError):
    """The inference engine rejected the configuration/weights pair."""


class DetectorStateError(RuntimeError):
    """An operation was called out of order (no network, no prior predict)."""
