"""
Route repository.

Data access layer for routes, including the bounding-box containment query.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from sqlalchemy import Select, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from routebase.features.users.models import User
from routebase.shared.repository import BaseRepository
from .models import Route


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned rectangle in degrees."""

    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    @property
    def center(self) -> Tuple[float, float]:
        """(lon, lat) of the rectangle's center."""
        return (
            (self.min_lng + self.max_lng) / 2,
            (self.min_lat + self.max_lat) / 2,
        )

    def contains(self, lon: float, lat: float) -> bool:
        """Strict containment; points on the edge are outside."""
        return self.min_lng < lon < self.max_lng and self.min_lat < lat < self.max_lat


class SpatialOrder(str, Enum):
    """Ordering of bounding-box results."""
    NONE = "none"          # stable: created_at, id
    DISTANCE = "distance"  # planar distance of center from the bounds' center


class RouteRepository(BaseRepository[Route]):
    """Repository for Route operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Route)

    async def get_for_owner(self, route_id: str, owner_id: str) -> Route | None:
        """
        Get a route only if it belongs to owner.

        Args:
            route_id: Route UUID
            owner_id: Owner's user UUID

        Returns:
            Route if found and owned, None otherwise
        """
        return await self.get_by(id=route_id, user_id=owner_id)

    async def list_for_owner(self, owner_id: str) -> List[Route]:
        """All routes of an owner, newest first."""
        result = await self.db.execute(
            select(Route)
            .where(Route.user_id == owner_id)
            .order_by(Route.created_at.desc(), Route.id)
        )
        return list(result.scalars().all())

    async def get_with_creator(
        self,
        route_id: str,
        active_owner_only: bool = False
    ) -> Optional[Tuple[Route, Optional[str]]]:
        """
        Any user's route together with its creator's name.

        Args:
            route_id: Route UUID
            active_owner_only: Hide routes whose owner is inactive

        Returns:
            (route, creator_name), or None when no such route is visible
        """
        query = (
            select(Route, User.name)
            .join(User, Route.user_id == User.id)
            .where(Route.id == route_id)
        )
        if active_owner_only:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query)
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def apply_features(self, route_id: str, values: dict) -> int:
        """
        Write derived feature columns in a single UPDATE.

        Returns:
            Number of rows updated
        """
        result = await self.db.execute(
            update(Route).where(Route.id == route_id).values(**values)
        )
        return result.rowcount

    # =========================================================================
    # Bounding-box search
    # =========================================================================

    @staticmethod
    def _in_bounds(query: Select, bounds: Bounds) -> Select:
        return (
            query
            .join(User, Route.user_id == User.id)
            .where(
                User.is_active.is_(True),
                Route.center_lat.is_not(None),
                Route.center_lon.is_not(None),
                Route.center_lat > bounds.min_lat,
                Route.center_lat < bounds.max_lat,
                Route.center_lon > bounds.min_lng,
                Route.center_lon < bounds.max_lng,
            )
        )

    async def find_in_bounds(
        self,
        bounds: Bounds,
        limit: int,
        offset: int,
        order: SpatialOrder = SpatialOrder.NONE
    ) -> List[Route]:
        """
        Routes of active owners whose center lies strictly inside bounds.

        Args:
            bounds: Search rectangle
            limit: Page size
            offset: Rows to skip
            order: Result ordering

        Returns:
            One page of routes
        """
        query = self._in_bounds(select(Route), bounds)

        if order == SpatialOrder.DISTANCE:
            center_lon, center_lat = bounds.center
            dx = Route.center_lon - center_lon
            dy = Route.center_lat - center_lat
            query = query.order_by(dx * dx + dy * dy, Route.id)
        else:
            query = query.order_by(Route.created_at, Route.id)

        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def count_in_bounds(self, bounds: Bounds) -> int:
        """Number of routes find_in_bounds would return without paging."""
        query = self._in_bounds(select(func.count(Route.id)), bounds)
        result = await self.db.execute(query)
        return result.scalar() or 0

    # =========================================================================
    # Public listing
    # =========================================================================

    @staticmethod
    def _public(query: Select, difficulty: Optional[str], search: Optional[str]) -> Select:
        query = query.join(User, Route.user_id == User.id).where(User.is_active.is_(True))
        if difficulty:
            query = query.where(Route.difficulty == difficulty)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(or_(
                func.lower(Route.name).like(pattern),
                func.lower(Route.scenery_description).like(pattern),
            ))
        return query

    async def list_public(
        self,
        difficulty: Optional[str],
        search: Optional[str],
        limit: int,
        offset: int
    ) -> List[Route]:
        """Routes of active owners, newest first, optionally filtered."""
        query = (
            self._public(select(Route), difficulty, search)
            .order_by(Route.created_at.desc(), Route.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_public(self, difficulty: Optional[str], search: Optional[str]) -> int:
        query = self._public(select(func.count(Route.id)), difficulty, search)
        result = await self.db.execute(query)
        return result.scalar() or 0
