"""
User model.

Owners of routes. Authentication itself happens outside this service;
only the id and the active flag matter here.
"""

from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.orm import relationship
import uuid

from routebase.models.base import Base


class User(Base):
    """
    Route owner.

    Routes of inactive users are hidden from public and spatial listings.
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=True)
    name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    routes = relationship(
        "Route",
        back_populates="owner",
        lazy="raise",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<User {self.id} ({self.name})>"
