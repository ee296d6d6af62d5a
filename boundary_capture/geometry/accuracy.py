"""Accuracy classification and capture-progress heuristic.

Fixes with ``accuracy_m == 0`` carry no accuracy information and are
left out of the mean rather than counted as perfect.  The tier is
informational: it never decides whether a point may be added.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from boundary_capture.core.constants import (
    EXCELLENT_MAX_ACCURACY_M,
    FAIR_MAX_ACCURACY_M,
    GOOD_MAX_ACCURACY_M,
    PROGRESS_MAX_PCT,
    PROGRESS_POINTS_WEIGHT,
)
from boundary_capture.models.snapshot import AccuracyTier

if TYPE_CHECKING:
    from collections.abc import Sequence

    from boundary_capture.models.point import GeoPoint

_TIER_PROGRESS_BONUS: dict[AccuracyTier, float] = {
    AccuracyTier.EXCELLENT: 40.0,
    AccuracyTier.GOOD: 30.0,
    AccuracyTier.FAIR: 20.0,
    AccuracyTier.POOR: 10.0,
}


def average_accuracy_m(points: Sequence[GeoPoint]) -> float | None:
    """Mean accuracy over points with a known (> 0) accuracy, else ``None``."""
    known = [p.accuracy_m for p in points if p.accuracy_m > 0]
    if not known:
        return None
    return sum(known) / len(known)


def tier_for_accuracy(accuracy_m: float | None) -> AccuracyTier:
    """Map a mean accuracy in metres to its tier (``None`` is POOR)."""
    if accuracy_m is None:
        return AccuracyTier.POOR
    if accuracy_m <= EXCELLENT_MAX_ACCURACY_M:
        return AccuracyTier.EXCELLENT
    if accuracy_m <= GOOD_MAX_ACCURACY_M:
        return AccuracyTier.GOOD
    if accuracy_m <= FAIR_MAX_ACCURACY_M:
        return AccuracyTier.FAIR
    return AccuracyTier.POOR


def classify(points: Sequence[GeoPoint]) -> AccuracyTier:
    """Classify a boundary's points into an accuracy tier."""
    return tier_for_accuracy(average_accuracy_m(points))


def progress_pct(point_count: int, min_points: int, tier: AccuracyTier) -> float:
    """Display-only capture progress in percent.

    ``min(100, n / min_points × 60)`` plus a tier bonus (Excellent 40,
    Good 30, Fair 20, Poor 10), capped at 100.  This is a UI heuristic;
    reaching 100 does not mean the boundary can be completed.
    """
    if min_points <= 0:
        msg = f"min_points must be > 0, got {min_points}"
        raise ValueError(msg)
    points_part = min(PROGRESS_MAX_PCT, point_count / min_points * PROGRESS_POINTS_WEIGHT)
    return min(PROGRESS_MAX_PCT, points_part + _TIER_PROGRESS_BONUS[tier])
