"""
API Router v1

Combines all route modules.
"""

from fastapi import APIRouter

from routebase.api.v1.routes import routes

api_router = APIRouter()

api_router.include_router(routes.router, prefix="/routes", tags=["Routes"])
