"""
Routebase

GPS route storage: GPX ingestion, derived geometry and timing features,
and bounding-box search over stored routes.
"""

__version__ = "0.1.0"
