"""
Route management service.

Owner-facing reads and edits of stored routes plus the public listing.
Geometry is never re-derived here; edits touch descriptive fields only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from routebase.config import settings
from routebase.shared.errors import (
    NotFoundError,
    PersistenceError,
    StorageError,
    ValidationError,
)
from routebase.shared.pagination import resolve_pagination, total_pages
from routebase.storage import BlobStore, generate_download_filename
from .models import Route
from .repository import RouteRepository
from .schemas import Difficulty, RouteUpdate, parse_descriptive

logger = logging.getLogger(__name__)

PUBLIC_DEFAULT_LIMIT = 20
PUBLIC_MAX_LIMIT = 100


@dataclass
class RouteDownload:
    """A route with a temporary link to its raw file."""

    route: Route
    download_url: str
    expires_at: datetime


@dataclass
class SharedDownload:
    """Download link for a route that may belong to someone else."""

    route: Route
    creator_name: Optional[str]
    download_url: str
    expires_at: datetime


@dataclass
class PublicRoutesPage:
    routes: List[Route]
    page: int
    limit: int
    total_count: int
    total_pages: int


class RouteService:
    """
    Service for stored routes.

    Usage:
        service = RouteService(db, blob_store)
        routes = await service.list_routes(owner_id)
    """

    def __init__(
        self,
        db: AsyncSession,
        blob_store: BlobStore,
        download_ttl: Optional[timedelta] = None,
        public_download_ttl: Optional[timedelta] = None
    ):
        self.db = db
        self.blob_store = blob_store
        self.routes = RouteRepository(db)
        self.download_ttl = download_ttl or timedelta(minutes=settings.download_url_ttl_minutes)
        self.public_download_ttl = public_download_ttl or timedelta(
            minutes=settings.public_download_url_ttl_minutes
        )

    async def _get_owned(self, owner_id: str, route_id: str) -> Route:
        route = await self.routes.get_for_owner(route_id, owner_id)
        if not route:
            raise NotFoundError()
        return route

    async def list_routes(self, owner_id: str) -> List[Route]:
        """All routes of an owner, newest first."""
        return await self.routes.list_for_owner(owner_id)

    async def get_route(self, owner_id: str, route_id: str) -> RouteDownload:
        """
        Get an owned route with a presigned download URL.

        Raises:
            NotFoundError: Route missing or owned by someone else
            StorageError: Download URL could not be generated
        """
        route = await self._get_owned(owner_id, route_id)

        filename = generate_download_filename(route.name, route.id)
        expires_at = datetime.now(timezone.utc) + self.download_ttl
        download_url = await self.blob_store.presigned_get(
            route.object_key, self.download_ttl, filename
        )

        return RouteDownload(route=route, download_url=download_url, expires_at=expires_at)

    async def get_download_url(self, route_id: str, public: bool = False) -> SharedDownload:
        """
        Download link for any user's route.

        Authenticated callers may fetch any route. Public links only cover
        routes of active owners and expire after the shorter public TTL.

        Raises:
            NotFoundError: Route missing, or owner inactive for public links
            StorageError: Download URL could not be generated
        """
        found = await self.routes.get_with_creator(route_id, active_owner_only=public)
        if not found:
            logger.warning(f"Route not found for download URL generation: {route_id}")
            raise NotFoundError()
        route, creator_name = found

        ttl = self.public_download_ttl if public else self.download_ttl
        filename = generate_download_filename(route.name, route.id)
        expires_at = datetime.now(timezone.utc) + ttl
        download_url = await self.blob_store.presigned_get(route.object_key, ttl, filename)

        logger.info(
            f"{'Public download' if public else 'Download'} URL generated for route "
            f"{route_id}, expires at {expires_at.isoformat()}"
        )
        return SharedDownload(
            route=route,
            creator_name=creator_name,
            download_url=download_url,
            expires_at=expires_at,
        )

    async def update_route(
        self,
        owner_id: str,
        route_id: str,
        changes: Dict[str, Any]
    ) -> Route:
        """
        Update descriptive fields of an owned route.

        Args:
            owner_id: Owner's user UUID
            route_id: Route UUID
            changes: Any of name, difficulty, scenery_description,
                additional_notes

        Raises:
            ValidationError: No fields given or invalid values
            NotFoundError: Route missing or owned by someone else
            PersistenceError: Database write failed
        """
        update = parse_descriptive(RouteUpdate, changes)
        fields = update.model_dump(exclude_unset=True)
        if not fields:
            raise ValidationError("No fields to update")
        for required in ("name", "difficulty"):
            if required in fields and fields[required] is None:
                raise ValidationError(f"{required} cannot be empty")
        if isinstance(fields.get("difficulty"), Difficulty):
            fields["difficulty"] = fields["difficulty"].value

        route = await self._get_owned(owner_id, route_id)
        try:
            route = await self.routes.update(route, **fields)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to update route {route_id}: {e}")
            raise PersistenceError(f"Failed to update route: {e}") from e

        logger.info(f"Route {route_id} updated by user {owner_id}: {sorted(fields)}")
        return route

    async def delete_route(self, owner_id: str, route_id: str) -> None:
        """
        Delete the row, then the raw file.

        A failed blob delete leaves an orphaned file; it is logged and the
        deletion still succeeds.

        Raises:
            NotFoundError: Route missing or owned by someone else
            PersistenceError: Database delete failed
        """
        route = await self._get_owned(owner_id, route_id)
        object_key = route.object_key

        try:
            await self.routes.delete(route)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to delete route {route_id}: {e}")
            raise PersistenceError(f"Failed to delete route: {e}") from e

        try:
            await self.blob_store.delete(object_key)
        except StorageError as e:
            logger.warning(f"Failed to delete file {object_key} for route {route_id}: {e}")

        logger.info(f"Route {route_id} deleted by user {owner_id}")

    async def list_public(
        self,
        difficulty: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[Union[int, str]] = None,
        limit: Optional[Union[int, str]] = None
    ) -> PublicRoutesPage:
        """
        Routes of active owners, newest first.

        Args:
            difficulty: Exact difficulty filter
            search: Case-insensitive substring of name or scenery description
            page: Page number, default 1
            limit: Page size, default 20, clamped to 100

        Raises:
            ValidationError: Unknown difficulty or bad pagination
        """
        pagination = resolve_pagination(page, limit, PUBLIC_DEFAULT_LIMIT, PUBLIC_MAX_LIMIT)

        if difficulty:
            try:
                difficulty = Difficulty(difficulty).value
            except ValueError:
                allowed = ", ".join(d.value for d in Difficulty)
                raise ValidationError(f"Invalid difficulty: must be one of {allowed}")
        search = search.strip() if search else None

        total_count = await self.routes.count_public(difficulty, search)
        routes = await self.routes.list_public(
            difficulty, search, limit=pagination.limit, offset=pagination.offset
        )

        return PublicRoutesPage(
            routes=routes,
            page=pagination.page,
            limit=pagination.limit,
            total_count=total_count,
            total_pages=total_pages(total_count, pagination.limit),
        )
