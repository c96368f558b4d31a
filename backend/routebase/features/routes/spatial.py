"""
Spatial query service.

Answers "which routes have a center point inside this rectangle" with
pagination. Only routes of active owners with a derived center are visible.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from routebase.shared.errors import ValidationError
from routebase.shared.pagination import resolve_pagination, total_pages
from .models import Route
from .repository import Bounds, RouteRepository, SpatialOrder

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 200

Coordinate = Optional[Union[float, int, str]]


def _parse_coordinate(name: str, value: Coordinate, low: float, high: float) -> float:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} parameter is required")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {name}: must be a number")

    if not math.isfinite(number) or not low <= number <= high:
        raise ValidationError(f"Invalid {name}: must be between {low:g} and {high:g}")
    return number


def validate_bounds(
    min_lat: Coordinate,
    max_lat: Coordinate,
    min_lng: Coordinate,
    max_lng: Coordinate
) -> Bounds:
    """
    Parse and check a search rectangle.

    Args:
        min_lat, max_lat: Latitudes in [-90, 90]
        min_lng, max_lng: Longitudes in [-180, 180]

    Returns:
        Bounds

    Raises:
        ValidationError: Missing, non-numeric or out-of-range values, or an
            empty rectangle
    """
    bounds = Bounds(
        min_lat=_parse_coordinate("min_lat", min_lat, -90, 90),
        max_lat=_parse_coordinate("max_lat", max_lat, -90, 90),
        min_lng=_parse_coordinate("min_lng", min_lng, -180, 180),
        max_lng=_parse_coordinate("max_lng", max_lng, -180, 180),
    )

    if bounds.min_lat >= bounds.max_lat:
        raise ValidationError("Invalid bounds: min_lat must be less than max_lat")
    if bounds.min_lng >= bounds.max_lng:
        raise ValidationError("Invalid bounds: min_lng must be less than max_lng")
    return bounds


def parse_order(value: Optional[Union[str, SpatialOrder]]) -> SpatialOrder:
    """Map an order_by parameter to SpatialOrder; missing means NONE."""
    if value is None or value == "":
        return SpatialOrder.NONE
    try:
        return SpatialOrder(value)
    except ValueError:
        allowed = ", ".join(o.value for o in SpatialOrder)
        raise ValidationError(f"Invalid order_by: must be one of {allowed}")


@dataclass
class SpatialQueryResult:
    """One page of a bounding-box query."""

    routes: List[Route]
    bounds: Bounds
    page: int
    limit: int
    total_count: int
    total_pages: int


class SpatialQueryService:
    """
    Bounding-box search over persisted routes.

    Usage:
        service = SpatialQueryService(db)
        result = await service.find_routes_in_bounds(43.0, 44.0, 76.0, 77.5)
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.routes = RouteRepository(db)

    async def find_routes_in_bounds(
        self,
        min_lat: Coordinate,
        max_lat: Coordinate,
        min_lng: Coordinate,
        max_lng: Coordinate,
        page: Optional[Union[int, str]] = None,
        limit: Optional[Union[int, str]] = None,
        order_by: Optional[Union[str, SpatialOrder]] = None
    ) -> SpatialQueryResult:
        """
        Routes whose center point lies strictly inside the rectangle.

        All parameters are validated before the database is touched.

        Returns:
            SpatialQueryResult with the page, total count and total pages

        Raises:
            ValidationError: Bad bounds, pagination or ordering
        """
        bounds = validate_bounds(min_lat, max_lat, min_lng, max_lng)
        pagination = resolve_pagination(page, limit, DEFAULT_LIMIT, MAX_LIMIT)
        order = parse_order(order_by)

        logger.info(
            f"Spatial query: lat ({bounds.min_lat}, {bounds.max_lat}), "
            f"lng ({bounds.min_lng}, {bounds.max_lng}), "
            f"page {pagination.page}, limit {pagination.limit}, order {order.value}"
        )

        total_count = await self.routes.count_in_bounds(bounds)
        routes = await self.routes.find_in_bounds(
            bounds,
            limit=pagination.limit,
            offset=pagination.offset,
            order=order,
        )

        return SpatialQueryResult(
            routes=routes,
            bounds=bounds,
            page=pagination.page,
            limit=pagination.limit,
            total_count=total_count,
            total_pages=total_pages(total_count, pagination.limit),
        )
