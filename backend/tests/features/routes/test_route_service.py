"""
Tests for RouteService: owner reads, edits, deletes and the public listing.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import InvalidRequestError

from routebase.features.routes import Route, RouteIngestionService, RouteService
from routebase.shared.errors import NotFoundError, StorageError, ValidationError

METADATA = {"name": "Big Sur Loop", "difficulty": "hard", "scenery_description": "Ocean cliffs"}


@pytest.fixture
async def route(db_session, blob_store, users, square_gpx) -> Route:
    result = await RouteIngestionService(db_session, blob_store).ingest(
        users["owner"], "bigsur.gpx", square_gpx, METADATA
    )
    return result.route


@pytest.fixture
def service(db_session, blob_store) -> RouteService:
    return RouteService(db_session, blob_store)


# =============================================================================
# Reads
# =============================================================================

class TestRouteReads:
    """Tests for list_routes and get_route."""

    async def test_list_routes_owner_only(self, service, route, users):
        """Owners see their own routes only."""
        assert [r.id for r in await service.list_routes(users["owner"])] == [route.id]
        assert await service.list_routes(users["other"]) == []

    async def test_get_route_with_download(self, service, route, users):
        """Download URL and expiry come with the route."""
        before = datetime.now(timezone.utc)

        download = await service.get_route(users["owner"], route.id)

        assert download.route.id == route.id
        assert download.download_url.endswith(route.object_key)
        assert before + timedelta(minutes=14) < download.expires_at
        assert download.expires_at <= datetime.now(timezone.utc) + timedelta(minutes=15)

    async def test_download_filename_from_route_name(self, service, route, users, blob_store):
        """Presigned URL is requested with the sanitised route name."""
        with patch.object(blob_store, "presigned_get", AsyncMock(return_value="https://signed")) as presign:
            download = await service.get_route(users["owner"], route.id)

        assert download.download_url == "https://signed"
        presign.assert_awaited_once_with(route.object_key, timedelta(minutes=15), "big_sur_loop.gpx")

    async def test_get_route_other_owner(self, service, route, users):
        """Someone else's route is NotFound."""
        with pytest.raises(NotFoundError):
            await service.get_route(users["other"], route.id)

    async def test_get_route_missing(self, service, users):
        """Unknown id is NotFound."""
        with pytest.raises(NotFoundError):
            await service.get_route(users["owner"], "missing")


# =============================================================================
# Shared download links
# =============================================================================

class TestSharedDownload:
    """Tests for get_download_url."""

    async def test_any_route_with_creator(self, service, route):
        """Authenticated links cover other users' routes and name the creator."""
        download = await service.get_download_url(route.id)

        assert download.route.id == route.id
        assert download.creator_name == "Owner"
        assert download.download_url.endswith(route.object_key)

    async def test_authenticated_ttl(self, service, route, blob_store):
        """Authenticated links use the regular TTL."""
        with patch.object(blob_store, "presigned_get", AsyncMock(return_value="https://signed")) as presign:
            await service.get_download_url(route.id)

        presign.assert_awaited_once_with(route.object_key, timedelta(minutes=15), "big_sur_loop.gpx")

    async def test_public_ttl(self, service, route, blob_store):
        """Public links expire after one minute."""
        before = datetime.now(timezone.utc)
        with patch.object(blob_store, "presigned_get", AsyncMock(return_value="https://signed")) as presign:
            download = await service.get_download_url(route.id, public=True)

        presign.assert_awaited_once_with(route.object_key, timedelta(minutes=1), "big_sur_loop.gpx")
        assert download.expires_at <= datetime.now(timezone.utc) + timedelta(minutes=1)
        assert download.expires_at > before

    async def test_inactive_owner(self, db_session, blob_store, users, square_gpx, service):
        """Inactive owners' routes: authenticated link yes, public link no."""
        result = await RouteIngestionService(db_session, blob_store).ingest(
            users["inactive"], "gone.gpx", square_gpx, METADATA
        )

        download = await service.get_download_url(result.route.id)
        assert download.creator_name == "Gone"

        with pytest.raises(NotFoundError):
            await service.get_download_url(result.route.id, public=True)

    async def test_missing_route(self, service, users):
        """Unknown id is NotFound."""
        with pytest.raises(NotFoundError):
            await service.get_download_url("missing")

    async def test_owner_not_lazy_loaded(self, route, session_factory):
        """Route.owner is never loaded implicitly."""
        async with session_factory() as session:
            stored = await session.get(Route, route.id)
            with pytest.raises(InvalidRequestError):
                stored.owner


# =============================================================================
# Updates
# =============================================================================

class TestRouteUpdate:
    """Tests for update_route."""

    async def test_update_descriptive_fields(self, service, route, users):
        """Descriptive fields change, geometry stays."""
        updated = await service.update_route(
            users["owner"], route.id, {"name": "Renamed", "difficulty": "expert"}
        )

        assert updated.name == "Renamed"
        assert updated.difficulty == "expert"
        assert updated.scenery_description == "Ocean cliffs"
        assert updated.center_lon == route.center_lon
        assert updated.convex_hull == route.convex_hull

    async def test_clear_optional_field(self, service, route, users):
        """Optional text can be cleared with null."""
        updated = await service.update_route(users["owner"], route.id, {"scenery_description": None})

        assert updated.scenery_description is None

    async def test_no_fields(self, service, route, users):
        """Empty change set is rejected."""
        with pytest.raises(ValidationError, match="No fields"):
            await service.update_route(users["owner"], route.id, {})

    @pytest.mark.parametrize("changes", [
        {"name": None},
        {"difficulty": None},
        {"difficulty": "impossible"},
        {"name": ""},
        {"center_lon": 5.0},
    ])
    async def test_invalid_changes(self, service, route, users, changes):
        """Invalid values and non-descriptive fields are rejected."""
        with pytest.raises(ValidationError):
            await service.update_route(users["owner"], route.id, changes)

    async def test_update_other_owner(self, service, route, users):
        """Cannot edit someone else's route."""
        with pytest.raises(NotFoundError):
            await service.update_route(users["other"], route.id, {"name": "Mine now"})


# =============================================================================
# Deletes
# =============================================================================

class TestRouteDelete:
    """Tests for delete_route."""

    async def test_delete_removes_row_and_blob(self, service, route, users, blob_store, session_factory):
        """Row and file are both gone."""
        await service.delete_route(users["owner"], route.id)

        async with session_factory() as session:
            assert await session.get(Route, route.id) is None
        assert not await blob_store.exists(route.object_key)

    async def test_blob_failure_not_fatal(self, service, route, users, blob_store, session_factory):
        """A failed file delete is logged; the row is still deleted."""
        with patch.object(blob_store, "delete", AsyncMock(side_effect=StorageError("refused"))):
            await service.delete_route(users["owner"], route.id)

        async with session_factory() as session:
            assert await session.get(Route, route.id) is None
        assert await blob_store.exists(route.object_key)

    async def test_delete_other_owner(self, service, route, users, blob_store):
        """Cannot delete someone else's route."""
        with pytest.raises(NotFoundError):
            await service.delete_route(users["other"], route.id)
        assert await blob_store.exists(route.object_key)


# =============================================================================
# Public listing
# =============================================================================

class TestListPublic:
    """Tests for list_public."""

    @pytest.fixture
    async def catalog(self, db_session, blob_store, users, square_gpx):
        ingest = RouteIngestionService(db_session, blob_store).ingest
        await ingest(users["owner"], "a.gpx", square_gpx, {"name": "Coastal Walk", "difficulty": "easy"})
        await ingest(users["other"], "b.gpx", square_gpx, {
            "name": "Ridge", "difficulty": "hard", "scenery_description": "Coastal views"
        })
        await ingest(users["inactive"], "c.gpx", square_gpx, {"name": "Coastal Secret", "difficulty": "easy"})

    async def test_active_owners_only(self, service, catalog):
        """Inactive users' routes are hidden."""
        page = await service.list_public()

        assert page.total_count == 2
        assert "Coastal Secret" not in {r.name for r in page.routes}

    async def test_defaults(self, service, catalog):
        """Page 1, limit 20."""
        page = await service.list_public()

        assert (page.page, page.limit, page.total_pages) == (1, 20, 1)

    async def test_limit_clamped(self, service, catalog):
        """Limit above 100 is clamped."""
        assert (await service.list_public(limit=1000)).limit == 100

    async def test_difficulty_filter(self, service, catalog):
        """Exact difficulty match."""
        page = await service.list_public(difficulty="hard")

        assert [r.name for r in page.routes] == ["Ridge"]

    async def test_unknown_difficulty(self, service, catalog):
        """Unknown difficulty is a validation error."""
        with pytest.raises(ValidationError, match="difficulty"):
            await service.list_public(difficulty="brutal")

    async def test_search_name_and_scenery(self, service, catalog):
        """Case-insensitive search over name and scenery description."""
        page = await service.list_public(search="COASTAL")

        assert {r.name for r in page.routes} == {"Coastal Walk", "Ridge"}

    async def test_search_no_match(self, service, catalog):
        """No match -> zero pages."""
        page = await service.list_public(search="desert")

        assert page.total_count == 0
        assert page.total_pages == 0
