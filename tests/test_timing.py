"""
Tests for duration formatting.
"""

from ops.timing import format_duration


class TestFormatDuration:
    def test_zero(self):
        assert format_duration(0) == "0 nanoseconds"

    def test_999_nanoseconds(self):
        assert format_duration(999) == "999 nanoseconds"

    def test_1000_nanoseconds_stays_nanoseconds(self):
        assert format_duration(1000) == "1000 nanoseconds"

    def test_just_over_1000_nanoseconds(self):
        assert format_duration(1001) == "1 microseconds"

    def test_1000_microseconds(self):
        assert format_duration(1000 * 1000) == "1000 microseconds"

    def test_microseconds_truncate(self):
        assert format_duration(25_999) == "25 microseconds"

    def test_1000_milliseconds(self):
        assert format_duration(1000 * 1_000_000) == "1000 milliseconds"

    def test_larger_stays_milliseconds(self):
        # No seconds/minutes unit
        assert format_duration(90 * 1_000_000_000) == "90000 milliseconds"

    def test_just_over_1000_microseconds(self):
        assert format_duration(1_000_001) == "1 milliseconds"
