"""
Route Endpoints

Upload, list, search, edit and delete GPX routes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from routebase.api.deps import get_blob_store, get_current_user_id
from routebase.config import settings
from routebase.db.session import get_async_db
from routebase.features.routes import (
    RouteIngestionService,
    RouteService,
    SharedDownload,
    SpatialQueryService,
)
from routebase.features.routes.schemas import (
    BoundsSchema,
    DownloadURLResponse,
    MessageResponse,
    PaginationSchema,
    PublicRoutesResponse,
    RouteCreatedResponse,
    RouteDetailResponse,
    RouteEnvelope,
    RouteInfo,
    RouteListResponse,
    RouteResponse,
    RouteUpdate,
    SpatialRoutesResponse,
)
from routebase.shared.errors import ValidationError
from routebase.storage import BlobStore

router = APIRouter()


def _download_response(download: SharedDownload) -> DownloadURLResponse:
    route = download.route
    return DownloadURLResponse(
        download_url=download.download_url,
        expires_at=download.expires_at,
        route_info=RouteInfo(
            id=route.id,
            name=route.name,
            filename=route.filename,
            file_size=route.file_size,
            creator_name=download.creator_name,
        ),
    )


# =============================================================================
# Upload
# =============================================================================

@router.post("", response_model=RouteCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_route(
    gpx_file: UploadFile = File(...),
    name: str = Form(...),
    difficulty: str = Form(...),
    scenery_description: Optional[str] = Form(None),
    additional_notes: Optional[str] = Form(None),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """
    Upload a GPX file with its descriptive fields.

    The route is created even when geometry cannot be derived from the
    file; its derived fields are then null.
    """
    max_bytes = settings.max_upload_bytes
    if gpx_file.size is not None and gpx_file.size > max_bytes:
        raise ValidationError(f"File too large (max {settings.max_upload_mb}MB)")

    # One byte past the limit is enough for the size check downstream
    content = await gpx_file.read(max_bytes + 1)

    service = RouteIngestionService(db, blob_store, max_upload_bytes=max_bytes)
    result = await service.ingest(
        user_id,
        gpx_file.filename,
        content,
        {
            "name": name,
            "difficulty": difficulty,
            "scenery_description": scenery_description,
            "additional_notes": additional_notes,
        },
    )

    return RouteCreatedResponse(route=RouteResponse.from_route(result.route))


# =============================================================================
# Listing and search
# =============================================================================

@router.get("", response_model=RouteListResponse)
async def list_routes(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Routes of the requesting user, newest first."""
    routes = await RouteService(db, blob_store).list_routes(user_id)
    return RouteListResponse(routes=[RouteResponse.from_route(r) for r in routes])


@router.get(
    "/bounds",
    response_model=SpatialRoutesResponse,
    dependencies=[Depends(get_current_user_id)],
)
async def get_routes_in_bounds(
    min_lat: Optional[float] = Query(None, description="South edge, degrees"),
    max_lat: Optional[float] = Query(None, description="North edge, degrees"),
    min_lng: Optional[float] = Query(None, description="West edge, degrees"),
    max_lng: Optional[float] = Query(None, description="East edge, degrees"),
    page: Optional[int] = Query(None, description="Page number, default 1"),
    limit: Optional[int] = Query(None, description="Page size, default 50, max 200"),
    order_by: Optional[str] = Query(None, description="'none' or 'distance'"),
    db: AsyncSession = Depends(get_async_db)
):
    """
    Routes whose center point lies strictly inside the rectangle.

    Bounds are optional here so that a missing one is reported by name.
    """
    result = await SpatialQueryService(db).find_routes_in_bounds(
        min_lat, max_lat, min_lng, max_lng,
        page=page, limit=limit, order_by=order_by,
    )

    return SpatialRoutesResponse(
        routes=[RouteResponse.from_route(r) for r in result.routes],
        bounds=BoundsSchema(
            min_lat=result.bounds.min_lat,
            max_lat=result.bounds.max_lat,
            min_lng=result.bounds.min_lng,
            max_lng=result.bounds.max_lng,
        ),
        pagination=PaginationSchema(
            page=result.page,
            limit=result.limit,
            total_count=result.total_count,
            total_pages=result.total_pages,
        ),
    )


@router.get("/public", response_model=PublicRoutesResponse)
async def list_public_routes(
    difficulty: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Matches name or scenery"),
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None, description="Page size, default 20, max 100"),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Routes of all active users; no authentication needed."""
    result = await RouteService(db, blob_store).list_public(
        difficulty=difficulty, search=search, page=page, limit=limit
    )

    return PublicRoutesResponse(
        routes=[RouteResponse.from_route(r) for r in result.routes],
        pagination=PaginationSchema(
            page=result.page,
            limit=result.limit,
            total_count=result.total_count,
            total_pages=result.total_pages,
        ),
    )


@router.get("/public/{route_id}/download", response_model=DownloadURLResponse)
async def get_public_download_url(
    route_id: str,
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Short-lived download link for a route of an active user; no auth."""
    download = await RouteService(db, blob_store).get_download_url(route_id, public=True)
    return _download_response(download)


# =============================================================================
# Single route
# =============================================================================

@router.get("/{route_id}", response_model=RouteEnvelope)
async def get_route(
    route_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Route with a temporary download URL for its GPX file."""
    download = await RouteService(db, blob_store).get_route(user_id, route_id)

    base = RouteResponse.from_route(download.route)
    return RouteEnvelope(
        route=RouteDetailResponse(
            **base.model_dump(),
            download_url=download.download_url,
            expires_at=download.expires_at,
        )
    )


@router.get(
    "/{route_id}/download",
    response_model=DownloadURLResponse,
    dependencies=[Depends(get_current_user_id)],
)
async def get_download_url(
    route_id: str,
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Download link for any user's route."""
    download = await RouteService(db, blob_store).get_download_url(route_id)
    return _download_response(download)


@router.patch("/{route_id}", response_model=RouteCreatedResponse)
async def update_route(
    route_id: str,
    changes: RouteUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Update descriptive fields. Geometry is never re-derived."""
    route = await RouteService(db, blob_store).update_route(
        user_id, route_id, changes.model_dump(exclude_unset=True)
    )
    return RouteCreatedResponse(
        message="Route updated successfully",
        route=RouteResponse.from_route(route),
    )


@router.delete("/{route_id}", response_model=MessageResponse)
async def delete_route(
    route_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_async_db),
    blob_store: BlobStore = Depends(get_blob_store)
):
    """Delete a route and its GPX file."""
    await RouteService(db, blob_store).delete_route(user_id, route_id)
    return MessageResponse(message="Route deleted successfully")
