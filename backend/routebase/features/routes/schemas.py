"""
Route schemas.

Pydantic models for route requests and responses. Geometry leaves the
service as GeoJSON geometry objects.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from routebase.shared.errors import ValidationError
from .models import Route


class Difficulty(str, Enum):
    """Route difficulty."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class RouteCreate(BaseModel):
    """Descriptive fields supplied with an upload."""

    name: str = Field(..., min_length=1, max_length=255)
    difficulty: Difficulty
    scenery_description: Optional[str] = Field(default=None, max_length=1000)
    additional_notes: Optional[str] = Field(default=None, max_length=2000)


class RouteUpdate(BaseModel):
    """Descriptive fields that can change after creation."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    difficulty: Optional[Difficulty] = None
    scenery_description: Optional[str] = Field(default=None, max_length=1000)
    additional_notes: Optional[str] = Field(default=None, max_length=2000)


def parse_descriptive(model: type[BaseModel], data: Dict[str, Any]) -> BaseModel:
    """Validate descriptive fields, converting pydantic errors to ValidationError."""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid route metadata: {details}")


# =============================================================================
# GeoJSON
# =============================================================================

def point_geojson(coordinates: Optional[list]) -> Optional[dict]:
    if coordinates is None:
        return None
    return {"type": "Point", "coordinates": coordinates}


def line_geojson(coordinates: Optional[list]) -> Optional[dict]:
    if coordinates is None:
        return None
    return {"type": "LineString", "coordinates": coordinates}


def polygon_geojson(ring: Optional[list]) -> Optional[dict]:
    if ring is None:
        return None
    return {"type": "Polygon", "coordinates": [ring]}


def hull_geojson(coordinates: Optional[list]) -> Optional[dict]:
    """Polygon for a real hull, Point or LineString for a degenerate one."""
    if coordinates is None:
        return None
    if len(coordinates) == 1:
        return point_geojson(coordinates[0])
    if len(coordinates) == 2:
        return line_geojson(coordinates)
    return polygon_geojson(coordinates)


# =============================================================================
# Responses
# =============================================================================

class RouteResponse(BaseModel):
    """Route as returned by the API."""

    id: str
    user_id: str
    name: str
    difficulty: Difficulty
    scenery_description: Optional[str] = None
    additional_notes: Optional[str] = None

    filename: str
    file_size: int

    center_point: Optional[dict] = None
    convex_hull: Optional[dict] = None
    simplified_path: Optional[dict] = None
    bounding_box: Optional[dict] = None
    route_length_km: Optional[float] = None

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    average_speed_kmh: Optional[float] = None
    max_elevation_gain_m: Optional[float] = None

    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_route(cls, route: Route) -> "RouteResponse":
        return cls(
            id=route.id,
            user_id=route.user_id,
            name=route.name,
            difficulty=route.difficulty,
            scenery_description=route.scenery_description,
            additional_notes=route.additional_notes,
            filename=route.filename,
            file_size=route.file_size,
            center_point=point_geojson(route.center_point),
            convex_hull=hull_geojson(route.convex_hull),
            simplified_path=line_geojson(route.simplified_path),
            bounding_box=polygon_geojson(route.bounding_box),
            route_length_km=route.route_length_km,
            start_time=route.start_time,
            end_time=route.end_time,
            duration_minutes=route.duration_minutes,
            average_speed_kmh=route.average_speed_kmh,
            max_elevation_gain_m=route.max_elevation_gain_m,
            created_at=route.created_at,
            updated_at=route.updated_at,
        )


class RouteDetailResponse(RouteResponse):
    """Route with a temporary download link for its GPX file."""

    download_url: str
    expires_at: datetime


class RouteInfo(BaseModel):
    id: str
    name: str
    filename: str
    file_size: int
    creator_name: Optional[str] = None


class DownloadURLResponse(BaseModel):
    """Temporary link to any user's GPX file."""

    download_url: str
    expires_at: datetime
    route_info: RouteInfo


class RouteCreatedResponse(BaseModel):
    message: str = "Route created successfully"
    route: RouteResponse


class RouteEnvelope(BaseModel):
    route: RouteDetailResponse


class RouteListResponse(BaseModel):
    routes: List[RouteResponse]


class MessageResponse(BaseModel):
    message: str


class BoundsSchema(BaseModel):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float


class PaginationSchema(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int


class SpatialRoutesResponse(BaseModel):
    """Routes whose center lies inside the requested bounds."""

    routes: List[RouteResponse]
    bounds: BoundsSchema
    pagination: PaginationSchema


class PublicRoutesResponse(BaseModel):
    routes: List[RouteResponse]
    pagination: PaginationSchema
