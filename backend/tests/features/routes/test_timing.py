"""
Tests for the temporal analyzer.
"""

from datetime import datetime, timedelta, timezone

import pytest

from routebase.features.routes.parser import TrackPoint
from routebase.features.routes.timing import (
    analyze_timing,
    calculate_average_speed,
    calculate_duration_minutes,
    calculate_elevation_gain,
)

T0 = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def point(minutes=None, ele=None):
    return TrackPoint(
        latitude=43.0,
        longitude=76.0,
        elevation=ele,
        timestamp=None if minutes is None else T0 + timedelta(minutes=minutes),
    )


# =============================================================================
# Elevation gain
# =============================================================================

class TestElevationGain:
    """Tests for calculate_elevation_gain."""

    def test_sum_of_positive_deltas(self):
        """Descents do not reduce the gain."""
        points = [point(ele=e) for e in (100, 150, 120, 200)]
        assert calculate_elevation_gain(points) == 130.0

    def test_gaps_skipped(self):
        """Pairs with a missing elevation are ignored, not bridged."""
        points = [point(ele=e) for e in (100, 120, None, 90, 95)]
        assert calculate_elevation_gain(points) == 25.0

    def test_no_elevation_is_absent(self):
        """No elevation pairs -> None, not 0."""
        assert calculate_elevation_gain([point(), point()]) is None

    def test_flat_is_zero(self):
        """Elevation present but flat -> 0."""
        assert calculate_elevation_gain([point(ele=5), point(ele=5)]) == 0.0


# =============================================================================
# Duration and speed
# =============================================================================

class TestDurationAndSpeed:
    """Tests for duration and average speed helpers."""

    def test_duration_rounded(self):
        """89.6 minutes round to 90."""
        end = T0 + timedelta(minutes=89, seconds=36)
        assert calculate_duration_minutes(T0, end) == 90

    @pytest.mark.parametrize("seconds,expected", [(30, 1), (150, 3), (89, 1), (29, 0)])
    def test_half_minute_rounds_up(self, seconds, expected):
        """Exact half minutes round up, not to even."""
        end = T0 + timedelta(seconds=seconds)
        assert calculate_duration_minutes(T0, end) == expected

    def test_negative_duration_clamped(self):
        """End before start clamps to 0."""
        assert calculate_duration_minutes(T0, T0 - timedelta(hours=1)) == 0

    def test_average_speed(self):
        """10 km in 30 min = 20 km/h."""
        assert calculate_average_speed(10.0, 30) == pytest.approx(20.0)

    def test_zero_duration_no_speed(self):
        """Never divide by zero."""
        assert calculate_average_speed(10.0, 0) is None

    def test_missing_length_no_speed(self):
        """Speed needs a length."""
        assert calculate_average_speed(None, 30) is None


# =============================================================================
# analyze_timing
# =============================================================================

class TestAnalyzeTiming:
    """Tests for analyze_timing."""

    def test_full_timing(self):
        """Start, end, duration and speed from timestamps."""
        timing = analyze_timing([point(0, 100), point(30, 150), point(60, 140)], length_km=5.0)

        assert timing.start_time == T0
        assert timing.end_time == T0 + timedelta(minutes=60)
        assert timing.duration_minutes == 60
        assert timing.average_speed_kmh == pytest.approx(5.0)
        assert timing.elevation_gain_m == 50.0

    def test_no_timestamps(self):
        """Without timestamps duration and speed are absent."""
        timing = analyze_timing([point(ele=1), point(ele=2)], length_km=3.0)

        assert timing.start_time is None
        assert timing.end_time is None
        assert timing.duration_minutes is None
        assert timing.average_speed_kmh is None
        assert timing.elevation_gain_m == 1.0

    def test_zero_duration(self):
        """All timestamps equal: duration 0, no speed."""
        timing = analyze_timing([point(0), point(0)], length_km=1.0)

        assert timing.duration_minutes == 0
        assert timing.average_speed_kmh is None

    def test_min_max_not_first_last(self):
        """Start/end are min/max even when timestamps are out of order."""
        timing = analyze_timing([point(30), point(0), point(90), point(45)], length_km=1.0)

        assert timing.start_time == T0
        assert timing.end_time == T0 + timedelta(minutes=90)
        assert timing.duration_minutes == 90

    def test_partial_timestamps(self):
        """Points without a timestamp are ignored for start/end."""
        timing = analyze_timing([point(), point(10), point(), point(40)], length_km=2.0)

        assert timing.duration_minutes == 30
        assert timing.average_speed_kmh == pytest.approx(4.0)
