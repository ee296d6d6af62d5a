"""Tests for the PositionSource ABC and the callable adapter."""

from __future__ import annotations

import pytest

from boundary_capture.capture.position_source import (
    CallablePositionSource,
    PositionSource,
    as_position_unavailable,
)
from boundary_capture.core.exceptions import PositionUnavailableError
from boundary_capture.models.point import RawFix


class TestPositionSourceABC:
    def test_cannot_instantiate_abstract(self) -> None:
        with pytest.raises(TypeError):
            PositionSource()  # type: ignore[abstract]

    def test_open_and_close_default_to_noops(self) -> None:
        class Minimal(PositionSource):
            def get_current_position(self, timeout_s: float, max_age_s: float) -> RawFix:
                return RawFix(latitude=0.0, longitude=0.0)

        source = Minimal()
        source.open()
        source.close()
        source.close()
        assert source.get_current_position(1, 0).latitude == 0.0


class TestCallablePositionSource:
    def test_passes_arguments_through(self) -> None:
        calls: list[tuple[float, float]] = []

        def fetch(timeout_s: float, max_age_s: float) -> RawFix:
            calls.append((timeout_s, max_age_s))
            return RawFix(latitude=6.428, longitude=-9.43, accuracy_m=4.0)

        fix = CallablePositionSource(fetch).get_current_position(10, 0)
        assert calls == [(10, 0)]
        assert fix.accuracy_m == 4.0

    def test_timeout_maps_to_timeout_reason(self) -> None:
        def fetch(timeout_s: float, max_age_s: float) -> RawFix:
            raise TimeoutError("no fix in 10 s")

        with pytest.raises(PositionUnavailableError) as exc:
            CallablePositionSource(fetch).get_current_position(10, 0)
        assert exc.value.reason == PositionUnavailableError.TIMEOUT
        assert isinstance(exc.value.__cause__, TimeoutError)

    @pytest.mark.parametrize("error", [OSError("port closed"), RuntimeError("gps off")])
    def test_other_failures_map_to_unavailable(self, error: Exception) -> None:
        def fetch(timeout_s: float, max_age_s: float) -> RawFix:
            raise error

        with pytest.raises(PositionUnavailableError) as exc:
            CallablePositionSource(fetch).get_current_position(10, 0)
        assert exc.value.reason == PositionUnavailableError.UNAVAILABLE
        assert exc.value.retryable is True

    def test_position_unavailable_passes_through(self) -> None:
        original = PositionUnavailableError(reason=PositionUnavailableError.PERMISSION_DENIED)

        def fetch(timeout_s: float, max_age_s: float) -> RawFix:
            raise original

        with pytest.raises(PositionUnavailableError) as exc:
            CallablePositionSource(fetch).get_current_position(10, 0)
        assert exc.value is original

    def test_permission_error_maps_to_permission_denied(self) -> None:
        def fetch(timeout_s: float, max_age_s: float) -> RawFix:
            raise PermissionError("location access revoked")

        with pytest.raises(PositionUnavailableError) as exc:
            CallablePositionSource(fetch).get_current_position(10, 0)
        assert exc.value.reason == PositionUnavailableError.PERMISSION_DENIED
        assert exc.value.retryable is False


class TestAsPositionUnavailable:
    @pytest.mark.parametrize(
        ("error", "reason"),
        [
            (TimeoutError("slow"), "timeout"),
            (PermissionError("denied"), "permission_denied"),
            (ConnectionResetError("serial reset"), "unavailable"),
            (RuntimeError("driver crash"), "unavailable"),
        ],
    )
    def test_reason_mapping(self, error: Exception, reason: str) -> None:
        mapped = as_position_unavailable(error, "Receiver failed")
        assert mapped.reason == reason
        assert mapped.message.startswith("Receiver failed: ")
