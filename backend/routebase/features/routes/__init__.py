"""
Route geometry pipeline.

Usage:
    from routebase.features.routes import RouteIngestionService, SpatialQueryService
    from routebase.features.routes import derive_geometry, analyze_timing

Components:
- Route: SQLAlchemy model for stored routes
- parse_track: GPX bytes -> ordered TrackPoints
- derive_geometry: centroid, convex hull, simplified path, bounding box, length
- analyze_timing: start/end, duration, elevation gain, average speed
- RouteIngestionService: upload -> insert -> derive -> update, with compensation
- SpatialQueryService: bounding-box containment search with pagination
- RouteService: owner reads/edits/deletes and the public listing
"""

from .models import Route
from .parser import ParsedTrack, TrackPoint, parse_track, validate_track_structure
from .geometry import RouteGeometry, derive_geometry
from .timing import RouteTiming, analyze_timing
from .derivation import RouteFeatures, derive_features
from .repository import Bounds, RouteRepository, SpatialOrder
from .ingestion import IngestionResult, IngestionState, RouteIngestionService
from .spatial import SpatialQueryResult, SpatialQueryService, validate_bounds
from .service import PublicRoutesPage, RouteDownload, RouteService, SharedDownload

__all__ = [
    # Model
    "Route",
    # Pipeline
    "ParsedTrack",
    "TrackPoint",
    "parse_track",
    "validate_track_structure",
    "RouteGeometry",
    "derive_geometry",
    "RouteTiming",
    "analyze_timing",
    "RouteFeatures",
    "derive_features",
    # Persistence and services
    "Bounds",
    "RouteRepository",
    "SpatialOrder",
    "IngestionResult",
    "IngestionState",
    "RouteIngestionService",
    "SpatialQueryResult",
    "SpatialQueryService",
    "validate_bounds",
    "PublicRoutesPage",
    "RouteDownload",
    "SharedDownload",
    "RouteService",
]
