"""Geodesic math for boundary rings.

Pure, side-effect-free functions over an ordered, implicitly closed ring
of points.  Anything exposing ``latitude`` and ``longitude`` attributes
(``GeoPoint``, ``Centroid``) is accepted, so the functions are safe to
call from any thread on immutable inputs.

Methods:
- Perimeter: haversine great-circle distance, R = 6,371,000 m, summed
  over consecutive vertices including the wrap-around segment.
- Area: planar shoelace in longitude/latitude degrees, scaled by
  ``111,319.9² × cos(mean latitude)`` to square metres, then hectares.
  The cosine term is mandatory: a fixed factor is only right at the
  latitude it was tuned for.
- Centroid: arithmetic mean of latitudes and of longitudes.  Adequate
  at farm scale; not a spherical centroid and not antimeridian-aware.

A self-intersecting ring still yields a well-defined shoelace value,
which is not the enclosed area.  ``is_simple_ring`` lets callers flag
such rings without rejecting them.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Protocol

from boundary_capture.core.constants import (
    EARTH_RADIUS_M,
    METRES_PER_DEGREE,
    MIN_POINTS_FOR_AREA,
    MIN_POINTS_FOR_PERIMETER,
    SQ_METRES_PER_HECTARE,
)
from boundary_capture.models.snapshot import Centroid

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = logging.getLogger("boundary_capture.geometry.geodesic")


class LatLon(Protocol):
    """Anything with WGS 84 ``latitude`` / ``longitude`` in degrees."""

    @property
    def latitude(self) -> float: ...

    @property
    def longitude(self) -> float: ...


# ---------------------------------------------------------------------------
# Distance / perimeter
# ---------------------------------------------------------------------------


def haversine_distance_m(a: LatLon, b: LatLon) -> float:
    """Great-circle distance between two points in metres.

    Exact on the sphere at every latitude; coincident points give ``0.0``.
    """
    phi1 = math.radians(a.latitude)
    phi2 = math.radians(b.latitude)
    d_phi = phi2 - phi1
    d_lambda = math.radians(b.longitude - a.longitude)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points.
    h = min(1.0, h)
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(h))


def ring_perimeter_m(points: Sequence[LatLon]) -> float:
    """Perimeter of a closed ring in metres.

    The segment from the last vertex back to the first is included, so
    a two-point ring measures twice the distance between its points.
    Fewer than two points give ``0.0``.
    """
    n = len(points)
    if n < MIN_POINTS_FOR_PERIMETER:
        return 0.0
    return sum(haversine_distance_m(points[i], points[(i + 1) % n]) for i in range(n))


# ---------------------------------------------------------------------------
# Area
# ---------------------------------------------------------------------------


def shoelace_area_deg2(points: Sequence[LatLon]) -> float:
    """Unsigned planar shoelace area in square degrees (lon × lat).

    Orientation-independent.  Fewer than three points give ``0.0``.
    """
    n = len(points)
    if n < MIN_POINTS_FOR_AREA:
        return 0.0

    # Translate to the first vertex to keep the cross products small.
    origin_lon = points[0].longitude
    origin_lat = points[0].latitude
    xs = [p.longitude - origin_lon for p in points]
    ys = [p.latitude - origin_lat for p in points]

    twice_area = 0.0
    for i in range(n):
        j = (i + 1) % n
        twice_area += xs[i] * ys[j] - xs[j] * ys[i]
    return abs(twice_area) / 2.0


def polygon_area_hectares(points: Sequence[LatLon]) -> float:
    """Ground area of a ring in hectares with latitude correction.

    ``shoelace(deg²) × 111,319.9² × cos(mean latitude) / 10,000``.
    Fewer than three points give ``0.0``; collinear rings give ``0.0``.
    """
    area_deg2 = shoelace_area_deg2(points)
    if area_deg2 == 0.0:
        return 0.0

    mean_lat = sum(p.latitude for p in points) / len(points)
    area_m2 = area_deg2 * METRES_PER_DEGREE * METRES_PER_DEGREE * math.cos(math.radians(mean_lat))
    return area_m2 / SQ_METRES_PER_HECTARE


# ---------------------------------------------------------------------------
# Centroid
# ---------------------------------------------------------------------------


def centroid(points: Sequence[LatLon]) -> Centroid | None:
    """Arithmetic mean of latitudes and longitudes, ``None`` when empty."""
    if not points:
        return None
    n = len(points)
    return Centroid(
        latitude=sum(p.latitude for p in points) / n,
        longitude=sum(p.longitude for p in points) / n,
    )


# ---------------------------------------------------------------------------
# Simplicity (informational)
# ---------------------------------------------------------------------------


def is_simple_ring(points: Sequence[LatLon]) -> bool:
    """Whether the closed ring does not cross itself.

    Rings too short to enclose an area are trivially simple.  Rings GEOS
    cannot build (e.g. every vertex identical) are reported as not simple.
    """
    if len(points) < MIN_POINTS_FOR_AREA:
        return True

    from shapely.errors import GEOSException
    from shapely.geometry import LinearRing

    try:
        ring = LinearRing([(p.longitude, p.latitude) for p in points])
        return bool(ring.is_simple)
    except (ValueError, GEOSException) as exc:
        logger.debug("Ring simplicity check failed | points=%d | error=%s", len(points), exc)
        return False
