"""Shared boundary-capture constants — single source of truth.

The field mappers this package replaces each carried their own copy of
the Earth radius and degree-to-metre factors (``111.32`` km, ``111,319.9`` m,
a fixed 7°N correction).  Every geometric computation imports from here.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# WGS 84 coordinate bounds
# ---------------------------------------------------------------------------

MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# ---------------------------------------------------------------------------
# Geodesy
# ---------------------------------------------------------------------------

EARTH_RADIUS_M = 6_371_000.0
"""Mean Earth radius used by the haversine formula."""

METRES_PER_DEGREE = 111_319.9
"""Length of one degree of latitude (and of longitude at the equator)."""

SQ_METRES_PER_HECTARE = 10_000.0

MIN_POINTS_FOR_AREA = 3
MIN_POINTS_FOR_PERIMETER = 2

# ---------------------------------------------------------------------------
# Accuracy tiers (metres, lower is better)
# ---------------------------------------------------------------------------

EXCELLENT_MAX_ACCURACY_M = 2.0
GOOD_MAX_ACCURACY_M = 5.0
FAIR_MAX_ACCURACY_M = 10.0

# Progress heuristic: share of the bar earned by point count, rest by tier.
PROGRESS_POINTS_WEIGHT = 60.0
PROGRESS_MAX_PCT = 100.0

# ---------------------------------------------------------------------------
# Session / capture defaults
# ---------------------------------------------------------------------------

DEFAULT_MIN_POINTS = 4
"""Points required before a boundary may be completed."""

ABSOLUTE_MIN_POINTS = 3
"""Lowest configurable ``min_points`` (a polygon needs three vertices)."""

DEFAULT_CAPTURE_INTERVAL_S = 5.0
MIN_CAPTURE_INTERVAL_S = 1.0
MAX_CAPTURE_INTERVAL_S = 60.0

DEFAULT_POSITION_TIMEOUT_S = 10.0
DEFAULT_POSITION_MAX_AGE_S = 0.0

DEFAULT_AREA_WARNING_HA = 10_000.0
"""Area above which a boundary is flagged as implausible for a single farm."""

# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

KML_NAMESPACE = "http://www.opengis.net/kml/2.2"
EXPORT_SCHEMA_VERSION = "boundary-snapshot-v1"
