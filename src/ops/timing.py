"""
Timing helpers.

Durations are carried as integer nanoseconds from time.perf_counter_ns().
"""

from __future__ import annotations

NANOSECONDS_PER_MICROSECOND = 1_000
NANOSECONDS_PER_MILLISECOND = 1_000_000


def format_duration(duration_ns: int) -> str:
    """
    Format an elapsed interval with a unit picked from its magnitude.

    Up to 1000 nanoseconds reports nanoseconds, up to 1000 microseconds
    reports microseconds, and everything else reports milliseconds.
    Counts are truncated.
    """
    if duration_ns <= 1000:
        return f"{int(duration_ns)} nanoseconds"
    if duration_ns <= 1000 * NANOSECONDS_PER_MICROSECOND:
        return f"{int(duration_ns // NANOSECONDS_PER_MICROSECOND)} microseconds"
    # milliseconds for anything longer
    return f"{int(duration_ns // NANOSECONDS_PER_MILLISECOND)} milliseconds"
