"""
Route model.

A stored GPX track: descriptive fields, a reference to the raw file in the
blob store, and the features derived from the track at ingestion time.
"""

from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, Float, Integer, ForeignKey, Text, JSON, Index
)
from sqlalchemy.orm import relationship
import uuid

from routebase.models.base import Base


class Route(Base):
    """
    Route with derived geometry and timing.

    Derived geometry (center, hull, simplified path, bounding box, length) is
    written as a group and is either fully present or fully null. Derived
    timing columns are nullable independently.

    Coordinates in JSON columns are [lon, lat] or [lon, lat, ele] lists.
    """

    __tablename__ = "routes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Descriptive fields (editable)
    name = Column(String(255), nullable=False)
    difficulty = Column(String(20), nullable=False)
    scenery_description = Column(Text, nullable=True)
    additional_notes = Column(Text, nullable=True)

    # Raw GPX file
    filename = Column(String(255), nullable=False)
    object_key = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False)

    # Derived geometry
    center_lon = Column(Float, nullable=True)
    center_lat = Column(Float, nullable=True)
    center_ele = Column(Float, nullable=True)
    convex_hull = Column(JSON, nullable=True)
    simplified_path = Column(JSON, nullable=True)
    bounding_box = Column(JSON, nullable=True)
    route_length_km = Column(Float, nullable=True)

    # Derived timing
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    average_speed_kmh = Column(Float, nullable=True)
    max_elevation_gain_m = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="routes", lazy="raise")

    __table_args__ = (
        Index("ix_routes_center", "center_lat", "center_lon"),
    )

    @property
    def has_geometry(self) -> bool:
        return self.center_lon is not None and self.center_lat is not None

    @property
    def center_point(self) -> list | None:
        """Center as [lon, lat] or [lon, lat, ele]; None before derivation."""
        if not self.has_geometry:
            return None
        if self.center_ele is None:
            return [self.center_lon, self.center_lat]
        return [self.center_lon, self.center_lat, self.center_ele]

    def __repr__(self):
        return f"<Route {self.id} ({self.name})>"
