"""Pure geometry for boundary rings: geodesic metrics and accuracy tiers."""

from boundary_capture.geometry.accuracy import (
    average_accuracy_m,
    classify,
    progress_pct,
    tier_for_accuracy,
)
from boundary_capture.geometry.geodesic import (
    centroid,
    haversine_distance_m,
    is_simple_ring,
    polygon_area_hectares,
    ring_perimeter_m,
)

__all__ = [
    "average_accuracy_m",
    "centroid",
    "classify",
    "haversine_distance_m",
    "is_simple_ring",
    "polygon_area_hectares",
    "progress_pct",
    "ring_perimeter_m",
    "tier_for_accuracy",
]
