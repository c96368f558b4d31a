"""
Object key and download filename helpers.
"""

import logging
import posixpath
import re

logger = logging.getLogger(__name__)

OBJECT_KEY_PREFIX = "gpx"

_SPACES = re.compile(r"[ \u3000]")
_NOT_ALLOWED = re.compile(r"[^A-Za-z0-9_]")


def generate_object_key(owner_id: str, route_id: str, filename: str) -> str:
    """
    Blob key for a route's raw file.

    Deterministic in owner, route and the original extension:
    generate_object_key("u1", "r1", "Morning Ride.GPX") -> "gpx/u1/r1.GPX"
    """
    _, ext = posixpath.splitext(filename)
    key = f"{OBJECT_KEY_PREFIX}/{owner_id}/{route_id}{ext}"
    logger.debug(f"Object key for user {owner_id}, route {route_id}, file {filename}: {key}")
    return key


def generate_download_filename(route_name: str, route_id: str) -> str:
    """
    Filename offered when a route's GPX is downloaded.

    Spaces (ASCII or ideographic) become underscores, everything outside
    [A-Za-z0-9_] is dropped and the result is lowercased. Falls back to
    the route id when nothing is left.

    Example:
        >>> generate_download_filename("Big Sur Loop!", "abc")
        'big_sur_loop.gpx'
    """
    name = _SPACES.sub("_", route_name or "")
    name = _NOT_ALLOWED.sub("", name).lower()
    if not name:
        name = route_id
    return f"{name}.gpx"
