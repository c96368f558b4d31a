"""
Route geometry engine.

Pure functions over a point sequence, all computed in the (lon, lat) plane:

- line centroid (segment midpoints weighted by segment length)
- convex hull (Andrew's monotone chain)
- simplified path (Douglas-Peucker, fixed 0.001 degree tolerance)
- bounding envelope as a closed 5-vertex ring
- route length in km (great-circle, elevation ignored)

Elevation never drives the 2-D math. It is copied onto output vertices from
the input point that produced them; the centroid takes the elevation of the
nearest point that has one.

Coordinates are emitted as [lon, lat] or [lon, lat, ele] lists, the layout
GeoJSON uses.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from routebase.shared.errors import InsufficientPointsError
from routebase.shared.geo import (
    calculate_total_distance,
    cross,
    envelope,
    planar_distance,
    point_segment_distance,
)
from .parser import TrackPoint

# ~111 m at the equator, less towards the poles. Fixed, not adaptive.
SIMPLIFY_TOLERANCE_DEG = 0.001

MIN_ROUTE_POINTS = 2

Coordinate = List[float]


@dataclass(frozen=True)
class RouteGeometry:
    """Derived geometry, stored as a group."""

    center_point: Coordinate
    convex_hull: List[Coordinate]
    simplified_path: List[Coordinate]
    bounding_box: List[Coordinate]
    length_km: float


def _coordinate(lon: float, lat: float, elevation: Optional[float] = None) -> Coordinate:
    if elevation is None:
        return [lon, lat]
    return [lon, lat, elevation]


def _point_coordinate(point: TrackPoint) -> Coordinate:
    return _coordinate(point.longitude, point.latitude, point.elevation)


def _require_line(points: Sequence[TrackPoint]) -> None:
    if len(points) < MIN_ROUTE_POINTS:
        raise InsufficientPointsError(
            f"A route needs at least {MIN_ROUTE_POINTS} valid points, got {len(points)}"
        )


# =============================================================================
# Centroid
# =============================================================================

def _nearest_elevation(points: Sequence[TrackPoint], x: float, y: float) -> Optional[float]:
    best_distance = None
    best_elevation = None
    for point in points:
        if point.elevation is None:
            continue
        distance = planar_distance(point.lon_lat, (x, y))
        if best_distance is None or distance < best_distance:
            best_distance = distance
            best_elevation = point.elevation
    return best_elevation


def calculate_centroid(points: Sequence[TrackPoint]) -> Coordinate:
    """
    Line centroid of the path.

    Each segment contributes its midpoint weighted by its planar length.
    When the total length is zero (all points identical) the arithmetic
    mean of the points is used instead.

    Args:
        points: Point sequence, at least two points

    Returns:
        [lon, lat] or [lon, lat, ele]
    """
    _require_line(points)

    total_length = 0.0
    sum_x = 0.0
    sum_y = 0.0
    for a, b in zip(points, points[1:]):
        length = planar_distance(a.lon_lat, b.lon_lat)
        sum_x += (a.longitude + b.longitude) / 2 * length
        sum_y += (a.latitude + b.latitude) / 2 * length
        total_length += length

    if total_length > 0:
        x = sum_x / total_length
        y = sum_y / total_length
    else:
        x = sum(p.longitude for p in points) / len(points)
        y = sum(p.latitude for p in points) / len(points)

    return _coordinate(x, y, _nearest_elevation(points, x, y))


# =============================================================================
# Convex hull
# =============================================================================

def calculate_convex_hull(points: Sequence[TrackPoint]) -> List[Coordinate]:
    """
    Convex hull of the points' (lon, lat) projection.

    Collinear and duplicate points are left out of the hull. With three or
    more hull vertices the result is a closed counter-clockwise ring (first
    vertex repeated last). Fewer distinct points give a degenerate hull:
    a single coordinate, or the two end points of a segment.

    Args:
        points: Point sequence, at least one point

    Returns:
        List of coordinates
    """
    # First occurrence of each planar position supplies the elevation
    by_position: Dict[Tuple[float, float], TrackPoint] = {}
    for point in points:
        by_position.setdefault(point.lon_lat, point)

    positions = sorted(by_position)
    if len(positions) <= 2:
        return [_point_coordinate(by_position[p]) for p in positions]

    lower: List[Tuple[float, float]] = []
    for p in positions:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: List[Tuple[float, float]] = []
    for p in reversed(positions):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    hull = lower[:-1] + upper[:-1]
    if len(hull) < 3:
        # All points collinear: the hull is the segment between the extremes
        return [_point_coordinate(by_position[positions[0]]),
                _point_coordinate(by_position[positions[-1]])]

    ring = [_point_coordinate(by_position[p]) for p in hull]
    ring.append(list(ring[0]))
    return ring


# =============================================================================
# Simplification
# =============================================================================

def simplify_path(
    points: Sequence[TrackPoint],
    tolerance: float = SIMPLIFY_TOLERANCE_DEG
) -> List[Coordinate]:
    """
    Douglas-Peucker simplification in the lon/lat plane.

    A point survives when it lies farther than `tolerance` degrees from the
    segment joining the kept neighbours around it. The first and last
    points are always kept. Iterative, so long tracks do not hit the
    recursion limit.

    Args:
        points: Point sequence, at least two points
        tolerance: Distance threshold in degrees

    Returns:
        Kept points as coordinates, in input order
    """
    _require_line(points)

    n = len(points)
    keep = [False] * n
    keep[0] = keep[-1] = True

    stack = [(0, n - 1)]
    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue

        a = points[start].lon_lat
        b = points[end].lon_lat
        max_distance = -1.0
        index = start
        for i in range(start + 1, end):
            distance = point_segment_distance(points[i].lon_lat, a, b)
            if distance > max_distance:
                max_distance = distance
                index = i

        if max_distance > tolerance:
            keep[index] = True
            stack.append((start, index))
            stack.append((index, end))

    return [_point_coordinate(p) for p, kept in zip(points, keep) if kept]


# =============================================================================
# Envelope and length
# =============================================================================

def calculate_bounding_box(points: Sequence[TrackPoint]) -> List[Coordinate]:
    """
    Axis-aligned envelope as a closed ring.

    Returns:
        [[min_lon, min_lat], [max_lon, min_lat], [max_lon, max_lat],
         [min_lon, max_lat], [min_lon, min_lat]]
    """
    min_lon, min_lat, max_lon, max_lat = envelope([p.lon_lat for p in points])
    return [
        [min_lon, min_lat],
        [max_lon, min_lat],
        [max_lon, max_lat],
        [min_lon, max_lat],
        [min_lon, min_lat],
    ]


def calculate_length_km(points: Sequence[TrackPoint]) -> float:
    """Sum of great-circle distances between consecutive points, in km."""
    return calculate_total_distance((p.latitude, p.longitude) for p in points)


def derive_geometry(points: Sequence[TrackPoint]) -> RouteGeometry:
    """
    Compute all geometry features for a point sequence.

    Raises:
        InsufficientPointsError: If fewer than two points are given
    """
    _require_line(points)
    return RouteGeometry(
        center_point=calculate_centroid(points),
        convex_hull=calculate_convex_hull(points),
        simplified_path=simplify_path(points),
        bounding_box=calculate_bounding_box(points),
        length_km=calculate_length_km(points),
    )
