"""
Shared test fixtures.

Each test gets a fresh in-memory SQLite database (aiosqlite, StaticPool) and
a LocalBlobStore under tmp_path.
"""

from typing import Iterable, Optional, Sequence

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from routebase.api.deps import get_blob_store
from routebase.db.session import get_async_db
from routebase.features.users import User
from routebase.main import app
from routebase.models import Base, register_models
from routebase.storage import LocalBlobStore

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

OWNER_ID = "11111111-1111-1111-1111-111111111111"
OTHER_ID = "22222222-2222-2222-2222-222222222222"
INACTIVE_ID = "33333333-3333-3333-3333-333333333333"


def _enable_foreign_keys(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# =============================================================================
# GPX builders
# =============================================================================

def _trkpt(point: Sequence, tag: str = "trkpt") -> str:
    lat, lon = point[0], point[1]
    ele = point[2] if len(point) > 2 else None
    time = point[3] if len(point) > 3 else None

    children = ""
    if ele is not None:
        children += f"<ele>{ele}</ele>"
    if time is not None:
        children += f"<time>{time}</time>"
    return f'<{tag} lat="{lat}" lon="{lon}">{children}</{tag}>'


def build_gpx(
    points: Iterable[Sequence] = (),
    segments: Optional[Iterable[Iterable[Sequence]]] = None,
    route_points: Iterable[Sequence] = ()
) -> bytes:
    """
    GPX document from (lat, lon[, ele[, time]]) tuples.

    `points` become one track segment; `segments` gives several segments
    of one track; `route_points` become a <rte>.
    """
    if segments is None:
        segments = [points] if points else []

    trksegs = "".join(
        "<trkseg>" + "".join(_trkpt(p) for p in segment) + "</trkseg>"
        for segment in segments
    )
    body = f"<trk><name>Test</name>{trksegs}</trk>" if trksegs else ""

    route_points = list(route_points)
    if route_points:
        body += "<rte>" + "".join(_trkpt(p, "rtept") for p in route_points) + "</rte>"

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="tests" xmlns="http://www.topografix.com/GPX/1/1">'
        f"{body}</gpx>"
    ).encode("utf-8")


# Unit square given as (lat, lon); its (lon, lat) corners are (0,0), (0,1), (1,1), (1,0)
SQUARE_POINTS = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


@pytest.fixture
def gpx_factory():
    return build_gpx


@pytest.fixture
def square_gpx() -> bytes:
    return build_gpx(SQUARE_POINTS)


@pytest.fixture
def timed_gpx() -> bytes:
    """Three points near Almaty, one hour, 100 m climb."""
    return build_gpx([
        (43.2000, 76.9000, 1000.0, "2024-06-01T08:00:00Z"),
        (43.2100, 76.9100, 1060.0, "2024-06-01T08:30:00Z"),
        (43.2200, 76.9200, 1100.0, "2024-06-01T09:00:00Z"),
    ])


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enable_foreign_keys)

    register_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(session_factory):
    """Two active users and one inactive user."""
    async with session_factory() as session:
        session.add_all([
            User(id=OWNER_ID, email="owner@example.com", name="Owner"),
            User(id=OTHER_ID, email="other@example.com", name="Other"),
            User(id=INACTIVE_ID, email="gone@example.com", name="Gone", is_active=False),
        ])
        await session.commit()
    return {"owner": OWNER_ID, "other": OTHER_ID, "inactive": INACTIVE_ID}


# =============================================================================
# Blob store and API client
# =============================================================================

@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(tmp_path / "blobs")


@pytest.fixture
async def client(session_factory, blob_store, users):
    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = override_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
