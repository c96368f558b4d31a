"""
GPX Track Parser

Turns raw GPX bytes into an ordered, flattened point sequence.

Track points are collected in file order (tracks, then segments, then
points). Files without track points fall back to route points. Points with a
missing or invalid coordinate are skipped and counted; elevation and time are
attached only when present and parseable, never defaulted.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Iterator, List, Optional, Tuple

import gpxpy
import gpxpy.gpx
from gpxpy.gpxfield import parse_time

from routebase.shared.errors import InvalidFormatError

logger = logging.getLogger(__name__)

GPX_OPEN_MARKER = b"<gpx"
GPX_CLOSE_MARKER = b"</gpx>"


@dataclass(frozen=True)
class TrackPoint:
    """Single GPS fix. Elevation in meters, timestamp in UTC."""

    latitude: float
    longitude: float
    elevation: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def lon_lat(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)


@dataclass(frozen=True)
class ParsedTrack:
    """Parser output: the flattened sequence plus the skipped-point count."""

    points: Tuple[TrackPoint, ...]
    skipped_points: int = 0


# =============================================================================
# Structure checks
# =============================================================================

def _local_name(tag: str) -> str:
    """Strip the XML namespace: '{http://...}trkpt' -> 'trkpt'."""
    return tag.rsplit("}", 1)[-1]


def _check_markers(content: bytes) -> None:
    if not content:
        raise InvalidFormatError("File is empty")
    if GPX_OPEN_MARKER not in content or GPX_CLOSE_MARKER not in content:
        raise InvalidFormatError("Invalid GPX file format: missing <gpx> root element")


def validate_track_structure(content: bytes) -> None:
    """
    Check that bytes look like a well-formed GPX document.

    Does not look at the points themselves; a structurally valid file may
    still contain fewer than two usable points.

    Raises:
        InvalidFormatError: Missing markers, broken XML, or wrong root element
    """
    _check_markers(content)
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise InvalidFormatError(f"Invalid GPX file: {e}")
    if _local_name(root.tag) != "gpx":
        raise InvalidFormatError(f"Invalid GPX file: root element is <{_local_name(root.tag)}>")


# =============================================================================
# Point building
# =============================================================================

def _finite(value: Optional[float]) -> Optional[float]:
    if value is None or not math.isfinite(value):
        return None
    return value


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _build_point(
    lat: Optional[float],
    lon: Optional[float],
    elevation: Optional[float],
    timestamp: Optional[datetime]
) -> Optional[TrackPoint]:
    """TrackPoint from raw values, None when a coordinate is unusable."""
    lat = _finite(lat)
    lon = _finite(lon)
    if lat is None or lon is None:
        return None
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lon <= 180.0):
        return None
    return TrackPoint(
        latitude=lat,
        longitude=lon,
        elevation=_finite(elevation),
        timestamp=_to_utc(timestamp),
    )


def _collect(raw_points: Iterable[Tuple]) -> ParsedTrack:
    points: List[TrackPoint] = []
    skipped = 0
    for raw in raw_points:
        point = _build_point(*raw)
        if point is None:
            skipped += 1
        else:
            points.append(point)
    return ParsedTrack(points=tuple(points), skipped_points=skipped)


# =============================================================================
# Strict path (gpxpy)
# =============================================================================

def _gpxpy_points(gpx: gpxpy.gpx.GPX) -> Iterator[Tuple]:
    has_track_points = any(
        segment.points for track in gpx.tracks for segment in track.segments
    )
    if has_track_points:
        for track in gpx.tracks:
            for segment in track.segments:
                for point in segment.points:
                    yield point.latitude, point.longitude, point.elevation, point.time
    else:
        for route in gpx.routes:
            for point in route.points:
                yield point.latitude, point.longitude, point.elevation, point.time


# =============================================================================
# Lenient path (ElementTree)
# =============================================================================

def _children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in elem:
        if _local_name(child.tag) == name:
            yield child


def _child_text(elem: ET.Element, name: str) -> Optional[str]:
    for child in _children(elem, name):
        if child.text and child.text.strip():
            return child.text.strip()
    return None


def _float_or_none(text: Optional[str]) -> Optional[float]:
    if text is None:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _time_or_none(text: Optional[str]) -> Optional[datetime]:
    if text is None:
        return None
    try:
        return parse_time(text)
    except (gpxpy.gpx.GPXException, ValueError):
        return None


def _raw_point(elem: ET.Element) -> Tuple:
    return (
        _float_or_none(elem.get("lat")),
        _float_or_none(elem.get("lon")),
        _float_or_none(_child_text(elem, "ele")),
        _time_or_none(_child_text(elem, "time")),
    )


def _etree_points(root: ET.Element) -> Iterator[Tuple]:
    track_points = [
        point
        for track in _children(root, "trk")
        for segment in _children(track, "trkseg")
        for point in _children(segment, "trkpt")
    ]
    if track_points:
        for point in track_points:
            yield _raw_point(point)
    else:
        for route in _children(root, "rte"):
            for point in _children(route, "rtept"):
                yield _raw_point(point)


def _parse_lenient(content: bytes) -> ParsedTrack:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise InvalidFormatError(f"Invalid GPX file: {e}")
    return _collect(_etree_points(root))


# =============================================================================
# Entry point
# =============================================================================

def parse_track(content: bytes) -> ParsedTrack:
    """
    Parse GPX content into a flattened point sequence.

    gpxpy is tried first. When it rejects an individual field (a point
    without coordinates, a garbled elevation or time), the document is
    rescanned leniently so that only the offending values are dropped.

    Args:
        content: GPX file content as bytes

    Returns:
        ParsedTrack with points in file order and the skipped-point count

    Raises:
        InvalidFormatError: If content is not a GPX document
    """
    _check_markers(content)

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        # Let ElementTree honour the XML encoding declaration
        return _parse_lenient(content)

    try:
        gpx = gpxpy.parse(text)
    except gpxpy.gpx.GPXXMLSyntaxException as e:
        logger.error(f"Failed to parse GPX: {e}")
        raise InvalidFormatError(f"Invalid GPX file: {e}")
    except gpxpy.gpx.GPXException as e:
        logger.warning(f"Strict GPX parse rejected a field ({e}), rescanning leniently")
        return _parse_lenient(content)

    parsed = _collect(_gpxpy_points(gpx))
    if parsed.skipped_points:
        logger.info(f"Skipped {parsed.skipped_points} points with invalid coordinates")
    return parsed
