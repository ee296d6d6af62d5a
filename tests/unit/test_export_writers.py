"""Tests for snapshot export: BoundaryRecord JSON, GeoJSON and KML.

Covers:
- ``$schema`` tag and metrics carried verbatim (never recomputed)
- GeoJSON geometry by vertex count, ``lon, lat`` order, closed ring
- KML document structure parsed back with lxml
- ``write_snapshot`` suffix dispatch and unsupported formats
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from lxml import etree

from boundary_capture.core.constants import EXPORT_SCHEMA_VERSION, KML_NAMESPACE
from boundary_capture.models.export import BoundaryRecord
from boundary_capture.models.snapshot import BoundarySnapshot
from boundary_capture.session.boundary_session import BoundarySession
from boundary_capture.utils.export_writers import (
    ExportFormatError,
    to_geojson,
    to_json,
    to_kml,
    write_snapshot,
)
from tests.conftest import LIBERIA_SQUARE, make_points

KML = f"{{{KML_NAMESPACE}}}"


def _snapshot(n: int = 4, *, complete: bool = False) -> BoundarySnapshot:
    session = BoundarySession.create("Cocoa plot 7")
    for p in make_points(LIBERIA_SQUARE[:n]):
        session.add_point(p)
    return session.complete() if complete else session.snapshot()


@pytest.fixture()
def completed() -> BoundarySnapshot:
    return _snapshot(complete=True)


# ===========================================================================
# JSON
# ===========================================================================


class TestJsonExport:
    def test_schema_tag_and_metrics(self, completed: BoundarySnapshot) -> None:
        doc = json.loads(to_json(completed, exported_at="2025-03-14T12:00:00+00:00"))
        assert doc["$schema"] == EXPORT_SCHEMA_VERSION
        assert doc["id"] == completed.id
        assert doc["status"] == "completed"
        assert doc["area_hectares"] == completed.area_hectares
        assert doc["perimeter_m"] == completed.perimeter_m
        assert doc["accuracy_tier"] == "good"
        assert doc["exported_at"] == "2025-03-14T12:00:00+00:00"
        assert [p["order"] for p in doc["points"]] == [1, 2, 3, 4]

    def test_exported_at_defaults_to_now(self, completed: BoundarySnapshot) -> None:
        assert BoundaryRecord.from_snapshot(completed).exported_at != ""

    def test_empty_boundary_has_null_centroid(self) -> None:
        doc = json.loads(to_json(_snapshot(0)))
        assert doc["centroid"] is None
        assert doc["points"] == []

    def test_record_accepts_alias_and_field_name(self) -> None:
        by_alias = BoundaryRecord.model_validate({"$schema": "v0", "id": "a", "name": "b"})
        by_name = BoundaryRecord(schema_version="v0", id="a", name="b")
        assert by_alias.schema_version == by_name.schema_version == "v0"
        assert by_name.to_dict()["$schema"] == "v0"


# ===========================================================================
# GeoJSON
# ===========================================================================


class TestGeoJsonExport:
    def test_polygon_ring_closed_lon_lat(self, completed: BoundarySnapshot) -> None:
        feature = to_geojson(completed)
        assert feature["type"] == "Feature"
        assert feature["id"] == completed.id
        geometry = feature["geometry"]
        assert geometry["type"] == "Polygon"
        ring = geometry["coordinates"][0]
        assert len(ring) == 5
        assert ring[0] == ring[-1]
        lat, lon = LIBERIA_SQUARE[0]
        assert ring[0] == [lon, lat]

    def test_properties_carry_metrics(self, completed: BoundarySnapshot) -> None:
        props = to_geojson(completed)["properties"]
        assert props["area_hectares"] == completed.area_hectares
        assert props["point_count"] == 4
        assert props["point_accuracy_m"] == [3.0, 3.0, 3.0, 3.0]
        assert props["centroid"]["latitude"] == pytest.approx(6.42845)

    @pytest.mark.parametrize(("n", "kind"), [(1, "Point"), (2, "LineString"), (3, "Polygon")])
    def test_geometry_by_vertex_count(self, n: int, kind: str) -> None:
        assert to_geojson(_snapshot(n))["geometry"]["type"] == kind

    def test_empty_boundary_null_geometry(self) -> None:
        assert to_geojson(_snapshot(0))["geometry"] is None


# ===========================================================================
# KML
# ===========================================================================


class TestKmlExport:
    def test_structure(self, completed: BoundarySnapshot) -> None:
        root = etree.fromstring(to_kml(completed))
        assert root.tag == f"{KML}kml"
        placemark = root.find(f"{KML}Document/{KML}Placemark")
        assert placemark is not None
        assert placemark.get("id") == completed.id
        assert placemark.findtext(f"{KML}name") == "Cocoa plot 7"

    def test_closed_ring_coordinates(self, completed: BoundarySnapshot) -> None:
        root = etree.fromstring(to_kml(completed))
        path = f".//{KML}Polygon/{KML}outerBoundaryIs/{KML}LinearRing/{KML}coordinates"
        text = root.findtext(path)
        assert text is not None
        tuples = text.split()
        assert len(tuples) == 5
        assert tuples[0] == tuples[-1]
        lon, lat = (float(v) for v in tuples[0].split(","))
        assert (lat, lon) == LIBERIA_SQUARE[0]

    def test_extended_data(self, completed: BoundarySnapshot) -> None:
        root = etree.fromstring(to_kml(completed))
        data = {
            d.get("name"): d.findtext(f"{KML}value") for d in root.iter(f"{KML}Data")
        }
        assert data["status"] == "completed"
        assert data["is_simple"] == "true"
        assert float(data["area_hectares"]) == pytest.approx(completed.area_hectares)

    def test_no_polygon_below_three_points(self) -> None:
        root = etree.fromstring(to_kml(_snapshot(2)))
        assert root.find(f".//{KML}Polygon") is None

    def test_xml_declaration(self, completed: BoundarySnapshot) -> None:
        assert to_kml(completed).startswith(b"<?xml")


# ===========================================================================
# File output
# ===========================================================================


class TestWriteSnapshot:
    @pytest.mark.parametrize("name", ["plot.json", "plot.geojson", "plot.kml", "PLOT.KML"])
    def test_writes_by_suffix(
        self, tmp_path: Path, completed: BoundarySnapshot, name: str
    ) -> None:
        target = write_snapshot(completed, tmp_path / name)
        assert target.exists()
        assert target.stat().st_size > 0

    def test_geojson_file_is_feature(self, tmp_path: Path, completed: BoundarySnapshot) -> None:
        target = write_snapshot(completed, tmp_path / "plot.geojson")
        assert json.loads(target.read_text(encoding="utf-8"))["type"] == "Feature"

    def test_unsupported_suffix(self, tmp_path: Path, completed: BoundarySnapshot) -> None:
        with pytest.raises(ExportFormatError, match=r"\.shp") as exc:
            write_snapshot(completed, tmp_path / "plot.shp")
        assert exc.value.correlation_id == completed.id
        assert not (tmp_path / "plot.shp").exists()
