"""GPS fix models: the raw sensor reading and the stored boundary vertex.

- ``RawFix``: what a position source hands back, unvalidated.
- ``GeoPoint``: an immutable, validated vertex of a boundary ring.

``GeoPoint`` enforces the WGS 84 range at construction; a point that
violates it never exists, so nothing downstream re-checks coordinates.
Coordinates are stored as ``latitude``/``longitude`` attributes (not a
``(lon, lat)`` tuple) because every consumer of the snapshot reads them
by name.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from boundary_capture.core.constants import (
    MAX_LATITUDE,
    MAX_LONGITUDE,
    MIN_LATITUDE,
    MIN_LONGITUDE,
)
from boundary_capture.core.exceptions import ContractError, InvalidCoordinateError
from boundary_capture.utils.helpers import (
    format_timestamp,
    parse_timestamp,
    require_keys,
    utc_now,
)

_POINT_REQUIRED_KEYS = frozenset({"latitude", "longitude"})


def _new_point_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """A single validated GPS fix belonging to a boundary.

    Attributes:
        latitude: Degrees north, WGS 84 (-90 to 90).
        longitude: Degrees east, WGS 84 (-180 to 180).
        accuracy_m: Horizontal accuracy radius in metres; ``0`` means unknown.
        captured_at: When the fix was taken (timezone-aware).
        order: 1-based position within the session (``0`` until stored).
        locked: Operator confirmed this vertex; it cannot be removed.
        point_id: Stable identifier used for removal and locking.
        altitude_m: Altitude reported by the receiver, if any.
        speed_mps: Ground speed reported by the receiver, if any.
    """

    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    captured_at: datetime = field(default_factory=utc_now)
    order: int = 0
    locked: bool = False
    point_id: str = field(default_factory=_new_point_id)
    altitude_m: float | None = None
    speed_mps: float | None = None

    def __post_init__(self) -> None:
        _check_coordinate("latitude", self.latitude, MIN_LATITUDE, MAX_LATITUDE)
        _check_coordinate("longitude", self.longitude, MIN_LONGITUDE, MAX_LONGITUDE)
        _check_real("accuracy_m", self.accuracy_m)
        if math.isnan(self.accuracy_m) or self.accuracy_m < 0:
            raise InvalidCoordinateError("accuracy_m", self.accuracy_m, "must be >= 0 metres")

    def to_dict(self) -> dict[str, object]:
        """Serialise to the outbound snapshot point shape (plus extras)."""
        return {
            "point_id": self.point_id,
            "order": self.order,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy_m": self.accuracy_m,
            "timestamp": format_timestamp(self.captured_at),
            "locked": self.locked,
            "altitude_m": self.altitude_m,
            "speed_mps": self.speed_mps,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> GeoPoint:
        """Deserialise a point from a snapshot dict.

        Raises:
            ContractError: If ``latitude``/``longitude`` are missing, a numeric
                field cannot be converted, or the timestamp is unreadable.
            InvalidCoordinateError: If the coordinates are out of range.
        """
        require_keys(data, _POINT_REQUIRED_KEYS, context="GeoPoint.from_dict")
        altitude = data.get("altitude_m")
        speed = data.get("speed_mps")
        try:
            latitude = float(data["latitude"])  # type: ignore[arg-type]
            longitude = float(data["longitude"])  # type: ignore[arg-type]
            accuracy_m = float(data.get("accuracy_m", 0.0))  # type: ignore[arg-type]
            order = int(data.get("order", 0))  # type: ignore[arg-type]
            altitude_m = float(altitude) if altitude is not None else None  # type: ignore[arg-type]
            speed_mps = float(speed) if speed is not None else None  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            msg = f"GeoPoint.from_dict: non-numeric point field: {exc}"
            raise ContractError(msg, stage="GeoPoint.from_dict", code="INVALID_POINT") from exc
        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy_m=accuracy_m,
            captured_at=parse_timestamp(data.get("timestamp")),
            order=order,
            locked=bool(data.get("locked", False)),
            point_id=str(data.get("point_id") or _new_point_id()),
            altitude_m=altitude_m,
            speed_mps=speed_mps,
        )


@dataclass(frozen=True, slots=True)
class RawFix:
    """An unvalidated position as reported by a ``PositionSource``.

    Attributes:
        latitude: Reported latitude in degrees.
        longitude: Reported longitude in degrees.
        accuracy_m: Reported accuracy radius in metres (``0`` if unknown).
        timestamp: When the receiver produced the fix.
        altitude_m: Optional altitude in metres.
        speed_mps: Optional ground speed in metres per second.
    """

    latitude: float
    longitude: float
    accuracy_m: float = 0.0
    timestamp: datetime = field(default_factory=utc_now)
    altitude_m: float | None = None
    speed_mps: float | None = None

    def to_point(self) -> GeoPoint:
        """Validate this fix into a ``GeoPoint`` (order assigned later).

        Raises:
            InvalidCoordinateError: If the fix is outside WGS 84 range.
        """
        return GeoPoint(
            latitude=self.latitude,
            longitude=self.longitude,
            accuracy_m=self.accuracy_m,
            captured_at=parse_timestamp(self.timestamp),
            altitude_m=self.altitude_m,
            speed_mps=self.speed_mps,
        )


def _check_real(field_name: str, value: object) -> None:
    """Raise ``InvalidCoordinateError`` unless *value* is an int or float."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise InvalidCoordinateError(
            field_name, value, f"must be a number, got {type(value).__name__}"
        )


def _check_coordinate(field_name: str, value: float, lo: float, hi: float) -> None:
    """Raise ``InvalidCoordinateError`` unless *value* is a number within [lo, hi]."""
    _check_real(field_name, value)
    if math.isnan(value) or value < lo or value > hi:
        raise InvalidCoordinateError(field_name, value, f"must be between {lo:g} and {hi:g}")
