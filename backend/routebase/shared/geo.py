"""
Geographic utility functions.

This is the SINGLE SOURCE OF TRUTH for distance calculations.
Great-circle helpers work on (lat, lon) in degrees; planar helpers work on
(lon, lat) pairs treated as plain x/y coordinates.
"""
import math
from typing import Iterable, Sequence, Tuple

# Earth radius in kilometers
EARTH_RADIUS_KM = 6371.0

# (x, y) in the lon/lat plane
PlanarPoint = Tuple[float, float]


def haversine(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates (degrees)
        lat2, lon2: Second point coordinates (degrees)

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) *
        math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def calculate_total_distance(coords: Iterable[Tuple[float, float]]) -> float:
    """
    Calculate total great-circle distance along a path.

    Args:
        coords: (lat, lon) pairs in path order

    Returns:
        Total distance in kilometers (0 for fewer than two points)
    """
    total = 0.0
    previous = None
    for lat, lon in coords:
        if previous is not None:
            total += haversine(previous[0], previous[1], lat, lon)
        previous = (lat, lon)
    return total


def planar_distance(a: PlanarPoint, b: PlanarPoint) -> float:
    """Euclidean distance in the lon/lat plane (degrees)."""
    return math.hypot(b[0] - a[0], b[1] - a[1])


def cross(o: PlanarPoint, a: PlanarPoint, b: PlanarPoint) -> float:
    """
    Z component of (a - o) x (b - o).

    Positive when o -> a -> b turns counter-clockwise, zero when collinear.
    """
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def point_segment_distance(p: PlanarPoint, a: PlanarPoint, b: PlanarPoint) -> float:
    """
    Shortest planar distance from p to the segment a-b.

    Degenerates to the point distance when a == b.
    """
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return planar_distance(p, a)

    t = ((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return planar_distance(p, (a[0] + t * dx, a[1] + t * dy))


def envelope(points: Sequence[PlanarPoint]) -> Tuple[float, float, float, float]:
    """
    Axis-aligned bounds of planar points.

    Returns:
        (min_x, min_y, max_x, max_y)

    Raises:
        ValueError: If points is empty
    """
    if not points:
        raise ValueError("envelope of an empty point set")
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return min(xs), min(ys), max(xs), max(ys)
