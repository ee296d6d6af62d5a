"""Pydantic export schema for boundary snapshots.

``BoundaryRecord`` is the JSON document handed to report generators,
certificate builders and map overlays.  It carries the snapshot's
derived metrics verbatim so consumers never re-derive area or
perimeter themselves.

The document is the ``BoundarySnapshot.to_dict()`` shape plus a
``$schema`` version tag and an export timestamp.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from boundary_capture.core.constants import EXPORT_SCHEMA_VERSION

if TYPE_CHECKING:
    from boundary_capture.models.snapshot import BoundarySnapshot


class PointRecord(BaseModel):
    """One boundary vertex as exported."""

    order: int
    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    timestamp: str | None = None
    point_id: str = ""
    locked: bool = False
    altitude_m: float | None = None
    speed_mps: float | None = None


class CentroidRecord(BaseModel):
    """Mean latitude/longitude of the boundary."""

    latitude: float
    longitude: float


class BoundaryRecord(BaseModel):
    """Top-level exported boundary document.

    Attributes:
        schema_version: Schema identifier for forward compatibility.
        id: Session identifier.
        name: Boundary name.
        points: Vertices in capture order.
        area_hectares: Latitude-corrected shoelace area in hectares.
        perimeter_m: Closed-ring haversine perimeter in metres.
        centroid: Mean position, ``None`` for an empty boundary.
        accuracy_tier: ``excellent`` / ``good`` / ``fair`` / ``poor``.
        status: Session status at export time.
        exported_at: When this document was produced (ISO 8601).
    """

    schema_version: str = Field(default=EXPORT_SCHEMA_VERSION, alias="$schema")
    id: str
    name: str
    points: list[PointRecord] = Field(default_factory=list)
    area_hectares: float = 0.0
    perimeter_m: float = 0.0
    centroid: CentroidRecord | None = None
    accuracy_tier: str = "poor"
    status: str = "draft"
    created_at: str | None = None
    completed_at: str | None = None
    average_accuracy_m: float | None = None
    progress_pct: float = 0.0
    is_simple: bool = True
    area_warning: str = ""
    exported_at: str = ""

    model_config = {"populate_by_name": True}

    @classmethod
    def from_snapshot(
        cls,
        snapshot: BoundarySnapshot,
        *,
        exported_at: str = "",
    ) -> BoundaryRecord:
        """Build an export record from a snapshot without transforming it."""
        data = snapshot.to_dict()
        data["exported_at"] = exported_at or datetime.now(UTC).isoformat()
        return cls.model_validate(data)

    def to_json(self, *, indent: int = 2) -> str:
        """Serialise to a JSON string with the ``$schema`` alias."""
        return self.model_dump_json(indent=indent, by_alias=True)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(by_alias=True)  # type: ignore[return-value]
