"""Tests for time helpers."""

import math

from cadence.domain.playback.timing import (
    clamp_fraction,
    format_time,
    progress_fraction,
    sanitize_seconds,
)


class TestSanitizeSeconds:
    def test_passes_valid_seconds(self):
        assert sanitize_seconds(12.5) == 12.5

    def test_unknown_values_read_as_zero(self):
        for value in (None, math.nan, math.inf, -3.0, "soon"):
            assert sanitize_seconds(value) == 0.0


class TestClampFraction:
    def test_clamps_into_unit_range(self):
        assert clamp_fraction(-0.5) == 0.0
        assert clamp_fraction(0.4) == 0.4
        assert clamp_fraction(3.0) == 1.0

    def test_nan_has_no_position(self):
        assert clamp_fraction(math.nan) is None


class TestProgressFraction:
    def test_share_of_duration(self):
        assert progress_fraction(30.0, 120.0) == 0.25

    def test_unknown_duration(self):
        assert progress_fraction(30.0, math.nan) == 0.0
        assert progress_fraction(30.0, 0.0) == 0.0

    def test_never_exceeds_one(self):
        assert progress_fraction(130.0, 120.0) == 1.0


class TestFormatTime:
    def test_formats_minutes_and_seconds(self):
        assert format_time(187) == "3:07"
        assert format_time(0) == "0:00"
        assert format_time(3605) == "60:05"

    def test_invalid_time(self):
        assert format_time(math.nan) == "0:00"
