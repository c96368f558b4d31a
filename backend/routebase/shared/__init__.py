"""
Shared utilities (NOT business logic).

Usage:
    from routebase.shared import haversine, BaseRepository
    from routebase.shared.errors import ValidationError
"""
from .geo import (
    haversine,
    calculate_total_distance,
    planar_distance,
    point_segment_distance,
    cross,
    envelope,
    EARTH_RADIUS_KM,
)
from .pagination import Pagination, resolve_pagination, total_pages
from .repository import BaseRepository

__all__ = [
    # Geo
    "haversine",
    "calculate_total_distance",
    "planar_distance",
    "point_segment_distance",
    "cross",
    "envelope",
    "EARTH_RADIUS_KM",
    # Pagination
    "Pagination",
    "resolve_pagination",
    "total_pages",
    # Repository
    "BaseRepository",
]
