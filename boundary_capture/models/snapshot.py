"""Read-only boundary snapshot handed to report generators and map overlays.

A ``BoundarySnapshot`` is the only way collaborators observe a session.
It is a frozen copy: mutating the session afterwards never changes a
snapshot already taken, and nothing a collaborator does to its copy
flows back into the session.

Consumers must read ``area_hectares`` / ``perimeter_m`` from here and
never re-derive them.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from boundary_capture.utils.helpers import format_timestamp

if TYPE_CHECKING:
    from boundary_capture.models.point import GeoPoint


class SessionStatus(enum.Enum):
    """Lifecycle of a boundary session.

    Values:
        DRAFT:     Created or reset; no points yet.
        RECORDING: At least one point has been added.
        COMPLETED: Closed by ``complete()``; point list frozen.
        VERIFIED:  Stamped by an external reviewer; never set by this package.
    """

    DRAFT = "draft"
    RECORDING = "recording"
    COMPLETED = "completed"
    VERIFIED = "verified"

    @property
    def is_closed(self) -> bool:
        """Whether the point list is frozen."""
        return self in (SessionStatus.COMPLETED, SessionStatus.VERIFIED)


class AccuracyTier(enum.Enum):
    """Trust classification of the mean fix accuracy (lower metres is better)."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


@dataclass(frozen=True, slots=True)
class Centroid:
    """Arithmetic-mean centre of a boundary."""

    latitude: float
    longitude: float

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True, slots=True)
class BoundarySnapshot:
    """Immutable view of a boundary session and its derived metrics.

    Attributes:
        id: Session identifier.
        name: Operator-supplied boundary name.
        points: Vertices in capture order, ``order`` values ``1..N``.
        area_hectares: Latitude-corrected shoelace area in hectares.
        perimeter_m: Closed-ring haversine perimeter in metres.
        centroid: Mean latitude/longitude, ``None`` for an empty boundary.
        accuracy_tier: Tier of the mean known fix accuracy.
        status: Session lifecycle state at snapshot time.
        created_at: When the session was created.
        completed_at: When the session was completed, if it has been.
        average_accuracy_m: Mean of known fix accuracies, ``None`` if none known.
        progress_pct: Display-only capture progress (0-100); not a
            correctness guarantee.
        is_simple: ``False`` when the ring crosses itself (area still reported).
        area_warning: Non-empty when area exceeds the reasonableness threshold.
    """

    id: str
    name: str
    points: tuple[GeoPoint, ...]
    area_hectares: float
    perimeter_m: float
    centroid: Centroid | None
    accuracy_tier: AccuracyTier
    status: SessionStatus
    created_at: datetime
    completed_at: datetime | None = None
    average_accuracy_m: float | None = None
    progress_pct: float = 0.0
    is_simple: bool = True
    area_warning: str = ""

    @property
    def point_count(self) -> int:
        return len(self.points)

    def to_dict(self) -> dict[str, object]:
        """Serialise to plain structured data for export or transfer."""
        return {
            "id": self.id,
            "name": self.name,
            "points": [p.to_dict() for p in self.points],
            "area_hectares": self.area_hectares,
            "perimeter_m": self.perimeter_m,
            "centroid": self.centroid.to_dict() if self.centroid is not None else None,
            "accuracy_tier": self.accuracy_tier.value,
            "status": self.status.value,
            "created_at": format_timestamp(self.created_at),
            "completed_at": format_timestamp(self.completed_at),
            "average_accuracy_m": self.average_accuracy_m,
            "progress_pct": self.progress_pct,
            "is_simple": self.is_simple,
            "area_warning": self.area_warning,
        }
