"""
Temporal analyzer.

Timing and elevation summary of a point sequence. "No data" stays None and
is never confused with a zero value.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .parser import TrackPoint


@dataclass(frozen=True)
class RouteTiming:
    """Derived timing; every field may be absent independently."""

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    average_speed_kmh: Optional[float] = None
    elevation_gain_m: Optional[float] = None


def calculate_elevation_gain(points: Sequence[TrackPoint]) -> Optional[float]:
    """
    Sum of positive elevation deltas between consecutive points.

    Pairs where either point lacks elevation are skipped. Returns None when
    no consecutive pair has elevation on both ends.

    Example:
        elevations 100, 120, None, 90, 95  ->  20 + 5 = 25.0
    """
    gain = 0.0
    has_pair = False
    for a, b in zip(points, points[1:]):
        if a.elevation is None or b.elevation is None:
            continue
        has_pair = True
        diff = b.elevation - a.elevation
        if diff > 0:
            gain += diff
    return gain if has_pair else None


def calculate_duration_minutes(start: datetime, end: datetime) -> int:
    """Minutes between start and end, half-up rounded and clamped at 0."""
    minutes = (end - start).total_seconds() / 60
    return max(0, math.floor(minutes + 0.5))


def calculate_average_speed(
    length_km: Optional[float],
    duration_minutes: Optional[int]
) -> Optional[float]:
    """km/h, or None unless both inputs exist and the duration is positive."""
    if length_km is None or not duration_minutes or duration_minutes <= 0:
        return None
    return length_km / (duration_minutes / 60)


def analyze_timing(
    points: Sequence[TrackPoint],
    length_km: Optional[float] = None
) -> RouteTiming:
    """
    Derive timing features.

    Args:
        points: Point sequence in file order
        length_km: Route length, used for the average speed

    Returns:
        RouteTiming; start/end/duration/speed are None when no point has a
        timestamp
    """
    elevation_gain = calculate_elevation_gain(points)

    timestamps = [p.timestamp for p in points if p.timestamp is not None]
    if not timestamps:
        return RouteTiming(elevation_gain_m=elevation_gain)

    start_time = min(timestamps)
    end_time = max(timestamps)
    duration = calculate_duration_minutes(start_time, end_time)

    return RouteTiming(
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration,
        average_speed_kmh=calculate_average_speed(length_km, duration),
        elevation_gain_m=elevation_gain,
    )
