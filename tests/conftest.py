"""Shared pytest fixtures for the boundary capture test suite."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from boundary_capture.capture.position_source import PositionSource
from boundary_capture.core.exceptions import PositionUnavailableError
from boundary_capture.models.point import GeoPoint, RawFix

# ---------------------------------------------------------------------------
# Reference boundaries
# ---------------------------------------------------------------------------

# ~100 m x 100 m cocoa plot near Greenville, Liberia (6.43°N): ~1.0 ha, ~400 m.
LIBERIA_SQUARE: list[tuple[float, float]] = [
    (6.4280, -9.4300),
    (6.4280, -9.4291),
    (6.4289, -9.4291),
    (6.4289, -9.4300),
]

FIXED_NOW = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


class FixedClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime = FIXED_NOW) -> None:
        self._next = start
        self.calls = 0

    def __call__(self) -> datetime:
        value = self._next
        self._next = value + timedelta(seconds=1)
        self.calls += 1
        return value


class FakePositionSource(PositionSource):
    """Scripted position source recording its lifecycle calls.

    ``fixes`` are returned (or raised, if they are exceptions) in order;
    once exhausted ``default`` is returned, or ``no_signal`` is raised.
    """

    def __init__(
        self,
        fixes: list[RawFix | Exception] | None = None,
        *,
        default: RawFix | None = None,
        open_error: Exception | None = None,
    ) -> None:
        self._fixes = list(fixes or [])
        self._default = default
        self._open_error = open_error
        self.open_calls = 0
        self.close_calls = 0
        self.fetch_calls = 0
        self.last_request: tuple[float, float] | None = None
        self.fetched = threading.Event()

    def open(self) -> None:
        self.open_calls += 1
        if self._open_error is not None:
            raise self._open_error

    def close(self) -> None:
        self.close_calls += 1

    def get_current_position(self, timeout_s: float, max_age_s: float) -> RawFix:
        self.fetch_calls += 1
        self.last_request = (timeout_s, max_age_s)
        try:
            if self._fixes:
                item = self._fixes.pop(0)
                if isinstance(item, Exception):
                    raise item
                return item
            if self._default is not None:
                return self._default
            raise PositionUnavailableError("no fix", reason=PositionUnavailableError.NO_SIGNAL)
        finally:
            self.fetched.set()


def make_points(
    coords: list[tuple[float, float]],
    accuracy_m: float = 3.0,
) -> list[GeoPoint]:
    """Build GeoPoints from ``(lat, lon)`` pairs."""
    return [GeoPoint(latitude=lat, longitude=lon, accuracy_m=accuracy_m) for lat, lon in coords]


def make_fix(lat: float, lon: float, accuracy_m: float = 3.0) -> RawFix:
    return RawFix(latitude=lat, longitude=lon, accuracy_m=accuracy_m, timestamp=FIXED_NOW)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FixedClock:
    """A deterministic clock starting at ``FIXED_NOW``."""
    return FixedClock()


@pytest.fixture()
def square_points() -> list[GeoPoint]:
    """The ~1 ha Liberian square as GeoPoints with 3 m accuracy."""
    return make_points(LIBERIA_SQUARE)


@pytest.fixture()
def square_fixes() -> list[RawFix]:
    """The ~1 ha Liberian square as raw fixes."""
    return [make_fix(lat, lon) for lat, lon in LIBERIA_SQUARE]
