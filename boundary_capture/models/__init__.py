"""Data models and schemas.

- GeoPoint / RawFix: validated boundary vertex and raw sensor fix
- BoundarySnapshot: read-only session view with derived metrics
- BoundaryRecord: pydantic export schema for JSON transfer
"""

from boundary_capture.models.point import GeoPoint, RawFix
from boundary_capture.models.snapshot import (
    AccuracyTier,
    BoundarySnapshot,
    Centroid,
    SessionStatus,
)

__all__ = [
    "AccuracyTier",
    "BoundarySnapshot",
    "Centroid",
    "GeoPoint",
    "RawFix",
    "SessionStatus",
]
