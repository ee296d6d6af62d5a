"""Boundary session — the state machine that owns one boundary's points.

Lifecycle::

    DRAFT ──add_point──▶ RECORDING ──complete()──▶ COMPLETED
      ▲                      │                        │
      └──────── reset() ◀────┴────────────────────────┘

``VERIFIED`` is stamped by an external reviewer and only ever arrives
through ``restore()``; no method here sets it.

Invariants:
- ``order`` values are exactly ``1..N`` after every mutation.
- Derived metrics (area, perimeter, tier, centroid) are recomputed and
  swapped in together with the point list, so a caller never sees a
  point list without matching metrics.
- A session has a single writer.  It does no locking of its own; hosts
  that share one across threads must serialise calls (the
  ``CaptureDriver`` does this for its session).
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from boundary_capture.core.constants import (
    ABSOLUTE_MIN_POINTS,
    DEFAULT_AREA_WARNING_HA,
    DEFAULT_MIN_POINTS,
)
from boundary_capture.core.exceptions import (
    ContractError,
    InsufficientPointsError,
    PointLockedError,
    PointNotFoundError,
    SessionClosedError,
    ValidationError,
)
from boundary_capture.geometry.accuracy import (
    average_accuracy_m,
    progress_pct,
    tier_for_accuracy,
)
from boundary_capture.geometry.geodesic import (
    centroid,
    is_simple_ring,
    polygon_area_hectares,
    ring_perimeter_m,
)
from boundary_capture.models.point import GeoPoint
from boundary_capture.models.snapshot import (
    AccuracyTier,
    BoundarySnapshot,
    Centroid,
    SessionStatus,
)
from boundary_capture.utils.helpers import parse_timestamp, require_keys, utc_now

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime

    from boundary_capture.core.config import CaptureConfig

logger = logging.getLogger("boundary_capture.session")

_SNAPSHOT_REQUIRED_KEYS = frozenset({"id", "name", "points", "status"})


@dataclass(frozen=True, slots=True)
class _Metrics:
    area_hectares: float = 0.0
    perimeter_m: float = 0.0
    centroid: Centroid | None = None
    average_accuracy_m: float | None = None
    accuracy_tier: AccuracyTier = AccuracyTier.POOR
    is_simple: bool = True


def _compute_metrics(points: Sequence[GeoPoint]) -> _Metrics:
    avg = average_accuracy_m(points)
    return _Metrics(
        area_hectares=polygon_area_hectares(points),
        perimeter_m=ring_perimeter_m(points),
        centroid=centroid(points),
        average_accuracy_m=avg,
        accuracy_tier=tier_for_accuracy(avg),
        is_simple=is_simple_ring(points),
    )


def _session_kwargs(
    config: CaptureConfig | None,
    min_points: int | None,
    clock: Callable[[], datetime] | None,
) -> dict[str, object]:
    """Constructor overrides shared by ``create()`` and ``restore()``."""
    kwargs: dict[str, object] = {}
    if config is not None:
        kwargs["min_points"] = config.min_points
        kwargs["area_warning_ha"] = config.area_warning_ha
    if min_points is not None:
        kwargs["min_points"] = min_points
    if clock is not None:
        kwargs["clock"] = clock
    return kwargs


def _renumber(points: Sequence[GeoPoint]) -> tuple[GeoPoint, ...]:
    return tuple(
        p if p.order == i else replace(p, order=i) for i, p in enumerate(points, start=1)
    )


class BoundarySession:
    """One in-progress or completed field boundary.

    Use ``BoundarySession.create(name)`` to start a new boundary in
    ``DRAFT``.  Observe it only through ``snapshot()``.
    """

    def __init__(
        self,
        name: str,
        *,
        session_id: str | None = None,
        min_points: int = DEFAULT_MIN_POINTS,
        area_warning_ha: float = DEFAULT_AREA_WARNING_HA,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if min_points < ABSOLUTE_MIN_POINTS:
            msg = f"min_points must be >= {ABSOLUTE_MIN_POINTS}, got {min_points}"
            raise ValidationError(msg, stage="boundary_session", code="INVALID_MIN_POINTS")
        self._id = session_id or uuid.uuid4().hex
        self._name = name
        self._min_points = min_points
        self._area_warning_ha = area_warning_ha
        self._clock = clock
        self._status = SessionStatus.DRAFT
        self._created_at = clock()
        self._completed_at: datetime | None = None
        self._points: tuple[GeoPoint, ...] = ()
        self._metrics = _Metrics()

    @classmethod
    def create(
        cls,
        name: str,
        *,
        config: CaptureConfig | None = None,
        min_points: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> BoundarySession:
        """Start a new boundary in ``DRAFT``.  Always succeeds for valid settings.

        Args:
            name: Operator-facing boundary name.
            config: Optional capture config supplying ``min_points`` and the
                area warning threshold.
            min_points: Overrides ``config.min_points``.
            clock: Time source (defaults to UTC now).
        """
        session = cls(name, **_session_kwargs(config, min_points, clock))  # type: ignore[arg-type]
        logger.info(
            "Boundary session created | session=%s | name=%s | min_points=%d",
            session.session_id,
            name,
            session.min_points,
        )
        return session

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def min_points(self) -> int:
        return self._min_points

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def completed_at(self) -> datetime | None:
        return self._completed_at

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return self._points

    @property
    def area_hectares(self) -> float:
        return self._metrics.area_hectares

    @property
    def perimeter_m(self) -> float:
        return self._metrics.perimeter_m

    @property
    def accuracy_tier(self) -> AccuracyTier:
        return self._metrics.accuracy_tier

    @property
    def centroid(self) -> Centroid | None:
        return self._metrics.centroid

    @property
    def last_point(self) -> GeoPoint | None:
        return self._points[-1] if self._points else None

    def __len__(self) -> int:
        return len(self._points)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_point(self, point: GeoPoint) -> GeoPoint:
        """Append a point, assigning the next contiguous ``order``.

        The first point moves a ``DRAFT`` session to ``RECORDING``.

        Returns:
            The stored point (with its ``order`` set).

        Raises:
            SessionClosedError: If the session is completed or verified.
            ValidationError: If a point with the same id is already stored.
        """
        self._ensure_open("add_point")
        if any(p.point_id == point.point_id for p in self._points):
            msg = f"Point {point.point_id} is already part of boundary {self._id}"
            raise ValidationError(
                msg,
                stage="boundary_session",
                code="DUPLICATE_POINT",
                correlation_id=self._id,
            )

        stored = replace(point, order=len(self._points) + 1)
        self._commit((*self._points, stored))

        if self._status is SessionStatus.DRAFT:
            self._status = SessionStatus.RECORDING
            logger.info("Boundary recording started | session=%s", self._id)

        logger.debug(
            "Point added | session=%s | order=%d | lat=%.6f | lon=%.6f | accuracy=%.1f m",
            self._id,
            stored.order,
            stored.latitude,
            stored.longitude,
            stored.accuracy_m,
        )
        return stored

    def remove_point(self, point_id: str) -> GeoPoint:
        """Remove a point and renumber the ones after it.

        Removing the last remaining point leaves the session in
        ``RECORDING``; use ``reset()`` to return to ``DRAFT``.

        Returns:
            The removed point.

        Raises:
            SessionClosedError: If the session is completed or verified.
            PointNotFoundError: If no point has *point_id*.
            PointLockedError: If the point is locked.
        """
        self._ensure_open("remove_point")
        index = self._index_of(point_id)
        removed = self._points[index]
        if removed.locked:
            msg = f"Point {point_id} (order {removed.order}) is locked"
            raise PointLockedError(msg, correlation_id=self._id)

        self._commit(_renumber(self._points[:index] + self._points[index + 1 :]))
        logger.debug(
            "Point removed | session=%s | order=%d | remaining=%d",
            self._id,
            removed.order,
            len(self._points),
        )
        return removed

    def remove_last_point(self) -> GeoPoint | None:
        """Remove the most recent point; ``None`` if there are none.

        Raises:
            SessionClosedError: If the session is completed or verified.
            PointLockedError: If the last point is locked.
        """
        self._ensure_open("remove_last_point")
        if not self._points:
            return None
        return self.remove_point(self._points[-1].point_id)

    def lock_point(self, point_id: str) -> GeoPoint:
        """Mark a point as operator-confirmed.  Locked points cannot be removed.

        Raises:
            SessionClosedError: If the session is completed or verified.
            PointNotFoundError: If no point has *point_id*.
        """
        self._ensure_open("lock_point")
        index = self._index_of(point_id)
        current = self._points[index]
        if current.locked:
            return current
        locked = replace(current, locked=True)
        # Geometry is unchanged, so the metrics carry over.
        self._points = self._points[:index] + (locked,) + self._points[index + 1 :]
        return locked

    def complete(self, min_points: int | None = None) -> BoundarySnapshot:
        """Close the boundary, freezing its point list.

        Args:
            min_points: Overrides the session's threshold for this call.

        Returns:
            A snapshot of the completed boundary.

        Raises:
            SessionClosedError: If the session is already completed or verified.
            InsufficientPointsError: If fewer than *min_points* points exist;
                the session state is left unchanged.
        """
        self._ensure_open("complete")
        required = self._min_points if min_points is None else min_points
        if len(self._points) < required:
            raise InsufficientPointsError(
                len(self._points), required, correlation_id=self._id
            )

        self._status = SessionStatus.COMPLETED
        self._completed_at = self._clock()

        snap = self.snapshot()
        if snap.area_warning:
            logger.warning(snap.area_warning)
        if not snap.is_simple:
            logger.warning(
                "Completed boundary crosses itself; area is not the enclosed area "
                "| session=%s",
                self._id,
            )
        logger.info(
            "Boundary completed | session=%s | points=%d | area=%.4f ha | "
            "perimeter=%.1f m | tier=%s",
            self._id,
            snap.point_count,
            snap.area_hectares,
            snap.perimeter_m,
            snap.accuracy_tier.value,
        )
        return snap

    def reset(self) -> None:
        """Discard all points and return to ``DRAFT``, keeping id and name."""
        previous = self._status
        self._points = ()
        self._metrics = _Metrics()
        self._status = SessionStatus.DRAFT
        self._completed_at = None
        logger.info(
            "Boundary reset | session=%s | previous_status=%s",
            self._id,
            previous.value,
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def snapshot(self) -> BoundarySnapshot:
        """Return an immutable copy of the session and its derived metrics."""
        m = self._metrics
        area_warning = ""
        if m.area_hectares > self._area_warning_ha:
            area_warning = (
                f"Area {m.area_hectares:.1f} ha exceeds threshold of "
                f"{self._area_warning_ha:.0f} ha for boundary '{self._name}'"
            )
        return BoundarySnapshot(
            id=self._id,
            name=self._name,
            points=self._points,
            area_hectares=m.area_hectares,
            perimeter_m=m.perimeter_m,
            centroid=m.centroid,
            accuracy_tier=m.accuracy_tier,
            status=self._status,
            created_at=self._created_at,
            completed_at=self._completed_at,
            average_accuracy_m=m.average_accuracy_m,
            progress_pct=progress_pct(len(self._points), self._min_points, m.accuracy_tier),
            is_simple=m.is_simple,
            area_warning=area_warning,
        )

    @classmethod
    def restore(
        cls,
        data: dict[str, object],
        *,
        config: CaptureConfig | None = None,
        min_points: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> BoundarySession:
        """Rebuild a session from ``BoundarySnapshot.to_dict()`` output.

        Status (including an externally stamped ``VERIFIED``) is preserved.
        Stored area/perimeter values are ignored and recomputed.  *config*,
        *min_points* and *clock* apply as in ``create()``.

        Raises:
            ContractError: If required keys are missing or malformed.
            InvalidCoordinateError: If a stored point is out of range.
        """
        require_keys(data, _SNAPSHOT_REQUIRED_KEYS, context="BoundarySession.restore")
        raw_points = data["points"]
        if not isinstance(raw_points, list):
            msg = f"points must be a list, got {type(raw_points).__name__}"
            raise ContractError(msg, stage="BoundarySession.restore", code="INVALID_POINTS")
        try:
            status = SessionStatus(data["status"])
        except ValueError as exc:
            msg = f"Unknown session status {data['status']!r}"
            raise ContractError(
                msg, stage="BoundarySession.restore", code="INVALID_STATUS"
            ) from exc

        session = cls(
            str(data["name"]),
            session_id=str(data["id"]),
            **_session_kwargs(config, min_points, clock),  # type: ignore[arg-type]
        )
        if data.get("created_at"):
            session._created_at = parse_timestamp(data["created_at"], field_name="created_at")
        completed_raw = data.get("completed_at")
        session._completed_at = (
            parse_timestamp(completed_raw, field_name="completed_at") if completed_raw else None
        )
        session._commit(_renumber([GeoPoint.from_dict(p) for p in raw_points]))
        session._status = status
        logger.info(
            "Boundary session restored | session=%s | status=%s | points=%d",
            session.session_id,
            status.value,
            len(session),
        )
        return session

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, points: tuple[GeoPoint, ...]) -> None:
        # Metrics are computed before anything is assigned, so a failure
        # leaves the previous points and metrics in place.
        metrics = _compute_metrics(points)
        self._points, self._metrics = points, metrics

    def _ensure_open(self, operation: str) -> None:
        if self._status.is_closed:
            msg = f"Cannot {operation}: boundary {self._id} is {self._status.value}"
            raise SessionClosedError(msg, correlation_id=self._id)

    def _index_of(self, point_id: str) -> int:
        for i, p in enumerate(self._points):
            if p.point_id == point_id:
                return i
        msg = f"Point {point_id} is not part of boundary {self._id}"
        raise PointNotFoundError(msg, correlation_id=self._id)
