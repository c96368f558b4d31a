"""
Database Models

Feature models live next to their features (routebase.features.*.models).
`register_models()` imports them so that Base.metadata knows every table.
"""

from routebase.models.base import Base


def register_models() -> None:
    """Import all feature models to register them with Base.metadata."""
    from routebase.features.users import models as _users  # noqa: F401
    from routebase.features.routes import models as _routes  # noqa: F401


__all__ = ["Base", "register_models"]
