"""
Feature derivation.

Runs parser -> geometry -> timing over raw GPX bytes and returns everything
the orchestrator writes back onto a route.
"""

import logging
from dataclasses import dataclass

from routebase.shared.errors import DerivationError
from .geometry import RouteGeometry, derive_geometry
from .parser import parse_track
from .timing import RouteTiming, analyze_timing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteFeatures:
    """Derived geometry and timing for one route."""

    geometry: RouteGeometry
    timing: RouteTiming
    point_count: int
    skipped_points: int = 0

    def as_columns(self) -> dict:
        """Route column values for a single update."""
        return {
            "center_lon": self.geometry.center_point[0],
            "center_lat": self.geometry.center_point[1],
            "center_ele": (
                self.geometry.center_point[2]
                if len(self.geometry.center_point) > 2 else None
            ),
            "convex_hull": self.geometry.convex_hull,
            "simplified_path": self.geometry.simplified_path,
            "bounding_box": self.geometry.bounding_box,
            "route_length_km": self.geometry.length_km,
            "start_time": self.timing.start_time,
            "end_time": self.timing.end_time,
            "duration_minutes": self.timing.duration_minutes,
            "average_speed_kmh": self.timing.average_speed_kmh,
            "max_elevation_gain_m": self.timing.elevation_gain_m,
        }


def derive_features(content: bytes) -> RouteFeatures:
    """
    Derive all features from GPX content.

    Args:
        content: Raw GPX bytes

    Returns:
        RouteFeatures

    Raises:
        DerivationError: On any parser, geometry or timing failure
    """
    try:
        track = parse_track(content)
        geometry = derive_geometry(track.points)
        timing = analyze_timing(track.points, geometry.length_km)
    except DerivationError:
        raise
    except Exception as e:
        raise DerivationError(f"Feature derivation failed: {e}") from e

    logger.debug(
        f"Derived features from {len(track.points)} points "
        f"({track.skipped_points} skipped), length {geometry.length_km:.3f} km"
    )
    return RouteFeatures(
        geometry=geometry,
        timing=timing,
        point_count=len(track.points),
        skipped_points=track.skipped_points,
    )
