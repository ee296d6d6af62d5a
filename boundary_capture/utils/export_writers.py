"""Serialise boundary snapshots for report generators and map overlays.

Formats:
- JSON    — ``BoundaryRecord`` document (the snapshot as-is, plus ``$schema``).
- GeoJSON — a single Feature; metrics travel in ``properties``.
- KML 2.2 — a single Placemark; metrics travel in ``ExtendedData``.

Writers never recompute geometry: area, perimeter and centroid come
straight from the snapshot.  Coordinates are emitted ``lon, lat`` as
both GeoJSON and KML require.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from boundary_capture.core.constants import KML_NAMESPACE, MIN_POINTS_FOR_AREA
from boundary_capture.core.exceptions import ValidationError
from boundary_capture.models.export import BoundaryRecord

if TYPE_CHECKING:
    from boundary_capture.models.snapshot import BoundarySnapshot

logger = logging.getLogger("boundary_capture.utils.export_writers")

JSON_SUFFIXES = frozenset({".json"})
GEOJSON_SUFFIXES = frozenset({".geojson"})
KML_SUFFIXES = frozenset({".kml"})


class ExportFormatError(ValidationError):
    """Raised when an export target has an unsupported file suffix."""

    default_stage = "export"
    default_code = "UNSUPPORTED_EXPORT_FORMAT"


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def to_json(snapshot: BoundarySnapshot, *, indent: int = 2, exported_at: str = "") -> str:
    """Render the snapshot as a ``BoundaryRecord`` JSON document."""
    return BoundaryRecord.from_snapshot(snapshot, exported_at=exported_at).to_json(indent=indent)


# ---------------------------------------------------------------------------
# GeoJSON
# ---------------------------------------------------------------------------


def _summary_properties(snapshot: BoundarySnapshot) -> dict[str, Any]:
    return {
        "id": snapshot.id,
        "name": snapshot.name,
        "status": snapshot.status.value,
        "area_hectares": snapshot.area_hectares,
        "perimeter_m": snapshot.perimeter_m,
        "accuracy_tier": snapshot.accuracy_tier.value,
        "average_accuracy_m": snapshot.average_accuracy_m,
        "point_count": snapshot.point_count,
        "is_simple": snapshot.is_simple,
    }


def to_geojson(snapshot: BoundarySnapshot) -> dict[str, Any]:
    """Render the snapshot as a GeoJSON Feature.

    Three or more vertices give a closed ``Polygon``; two give a
    ``LineString``, one a ``Point``, none a ``null`` geometry.
    """
    coords = [[p.longitude, p.latitude] for p in snapshot.points]

    geometry: dict[str, Any] | None
    if len(coords) >= MIN_POINTS_FOR_AREA:
        geometry = {"type": "Polygon", "coordinates": [[*coords, coords[0]]]}
    elif len(coords) == 2:
        geometry = {"type": "LineString", "coordinates": coords}
    elif len(coords) == 1:
        geometry = {"type": "Point", "coordinates": coords[0]}
    else:
        geometry = None

    properties = _summary_properties(snapshot)
    properties["centroid"] = snapshot.centroid.to_dict() if snapshot.centroid else None
    properties["point_accuracy_m"] = [p.accuracy_m for p in snapshot.points]

    return {
        "type": "Feature",
        "id": snapshot.id,
        "geometry": geometry,
        "properties": properties,
    }


# ---------------------------------------------------------------------------
# KML
# ---------------------------------------------------------------------------


def to_kml(snapshot: BoundarySnapshot) -> bytes:
    """Render the snapshot as a KML 2.2 document with one Placemark.

    Boundaries with fewer than three vertices are written without a
    Polygon (ExtendedData only).
    """
    from lxml import etree  # type: ignore[attr-defined]

    ns = KML_NAMESPACE
    root = etree.Element(f"{{{ns}}}kml", nsmap={None: ns})
    document = etree.SubElement(root, f"{{{ns}}}Document")
    placemark = etree.SubElement(document, f"{{{ns}}}Placemark", id=snapshot.id)
    etree.SubElement(placemark, f"{{{ns}}}name").text = snapshot.name

    extended = etree.SubElement(placemark, f"{{{ns}}}ExtendedData")
    for key, value in _summary_properties(snapshot).items():
        if value is None:
            continue
        data = etree.SubElement(extended, f"{{{ns}}}Data", name=key)
        etree.SubElement(data, f"{{{ns}}}value").text = (
            str(value).lower() if isinstance(value, bool) else str(value)
        )

    if snapshot.point_count >= MIN_POINTS_FOR_AREA:
        ring_points = [*snapshot.points, snapshot.points[0]]
        polygon = etree.SubElement(placemark, f"{{{ns}}}Polygon")
        outer = etree.SubElement(polygon, f"{{{ns}}}outerBoundaryIs")
        ring = etree.SubElement(outer, f"{{{ns}}}LinearRing")
        etree.SubElement(ring, f"{{{ns}}}coordinates").text = " ".join(
            f"{p.longitude!r},{p.latitude!r}" for p in ring_points
        )

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8", pretty_print=True)


# ---------------------------------------------------------------------------
# File output
# ---------------------------------------------------------------------------


def write_snapshot(snapshot: BoundarySnapshot, path: str | Path) -> Path:
    """Write the snapshot to *path*, choosing the format from its suffix.

    Returns:
        The resolved output path.

    Raises:
        ExportFormatError: If the suffix is not ``.json``, ``.geojson`` or ``.kml``.
    """
    target = Path(path)
    suffix = target.suffix.lower()

    if suffix in JSON_SUFFIXES:
        target.write_text(to_json(snapshot), encoding="utf-8")
    elif suffix in GEOJSON_SUFFIXES:
        target.write_text(json.dumps(to_geojson(snapshot), indent=2), encoding="utf-8")
    elif suffix in KML_SUFFIXES:
        target.write_bytes(to_kml(snapshot))
    else:
        msg = f"Unsupported export format {suffix!r} for {target.name}"
        raise ExportFormatError(msg, correlation_id=snapshot.id)

    logger.info(
        "Boundary exported | session=%s | format=%s | path=%s",
        snapshot.id,
        suffix.lstrip("."),
        target,
    )
    return target
