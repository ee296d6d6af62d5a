"""Tests for capture configuration.

Covers:
- Default values match the field mappers' behaviour
- Loading from environment variables
- Type coercion (string env vars to numeric fields)
- Fail-fast range validation
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from boundary_capture.core.config import CaptureConfig, ConfigValidationError


class TestCaptureConfigDefaults:
    """Verify default configuration values."""

    def test_default_min_points(self) -> None:
        assert CaptureConfig().min_points == 4

    def test_default_interval(self) -> None:
        assert CaptureConfig().capture_interval_s == 5.0

    def test_default_position_request(self) -> None:
        cfg = CaptureConfig()
        assert cfg.position_timeout_s == 10.0
        assert cfg.position_max_age_s == 0.0

    def test_filters_disabled_by_default(self) -> None:
        cfg = CaptureConfig()
        assert cfg.max_fix_accuracy_m == 0.0
        assert cfg.min_point_distance_m == 0.0
        assert cfg.max_points == 0

    def test_default_area_warning(self) -> None:
        assert CaptureConfig().area_warning_ha == 10_000.0

    def test_frozen(self) -> None:
        cfg = CaptureConfig()
        with pytest.raises(AttributeError):
            cfg.min_points = 5  # type: ignore[misc]


class TestCaptureConfigFromEnv:
    """Verify loading from environment variables."""

    def test_loads_from_environment(self) -> None:
        """All env vars are read and coerced to correct types."""
        env = {
            "BOUNDARY_MIN_POINTS": "6",
            "CAPTURE_INTERVAL_S": "2.5",
            "POSITION_TIMEOUT_S": "15",
            "POSITION_MAX_AGE_S": "3",
            "MAX_FIX_ACCURACY_M": "12",
            "MIN_POINT_DISTANCE_M": "1.5",
            "MAX_POINTS": "500",
            "AREA_WARNING_HA": "250",
        }
        with patch.dict(os.environ, env, clear=False):
            cfg = CaptureConfig.from_env()

        assert cfg.min_points == 6
        assert cfg.capture_interval_s == 2.5
        assert cfg.position_timeout_s == 15.0
        assert cfg.position_max_age_s == 3.0
        assert cfg.max_fix_accuracy_m == 12.0
        assert cfg.min_point_distance_m == 1.5
        assert cfg.max_points == 500
        assert cfg.area_warning_ha == 250.0

    def test_defaults_when_env_empty(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = CaptureConfig.from_env()
        assert cfg == CaptureConfig()

    def test_non_numeric_raises_value_error(self) -> None:
        with (
            patch.dict(os.environ, {"CAPTURE_INTERVAL_S": "abc"}, clear=True),
            pytest.raises(ValueError),
        ):
            CaptureConfig.from_env()


class TestCaptureConfigValidation:
    """Out-of-range values fail fast with the offending key."""

    @pytest.mark.parametrize(
        ("env", "key"),
        [
            ({"BOUNDARY_MIN_POINTS": "2"}, "BOUNDARY_MIN_POINTS"),
            ({"CAPTURE_INTERVAL_S": "0.5"}, "CAPTURE_INTERVAL_S"),
            ({"CAPTURE_INTERVAL_S": "61"}, "CAPTURE_INTERVAL_S"),
            ({"POSITION_TIMEOUT_S": "0"}, "POSITION_TIMEOUT_S"),
            ({"POSITION_MAX_AGE_S": "-1"}, "POSITION_MAX_AGE_S"),
            ({"MAX_FIX_ACCURACY_M": "-5"}, "MAX_FIX_ACCURACY_M"),
            ({"MIN_POINT_DISTANCE_M": "-0.1"}, "MIN_POINT_DISTANCE_M"),
            ({"MAX_POINTS": "-1"}, "MAX_POINTS"),
            ({"MAX_POINTS": "3"}, "MAX_POINTS"),
            ({"AREA_WARNING_HA": "0"}, "AREA_WARNING_HA"),
        ],
    )
    def test_rejects_out_of_range(self, env: dict[str, str], key: str) -> None:
        with patch.dict(os.environ, env, clear=True), pytest.raises(ConfigValidationError) as exc:
            CaptureConfig.from_env()
        assert exc.value.key == key
        assert exc.value.code == "CONFIG_VALIDATION_FAILED"

    def test_interval_bounds_inclusive(self) -> None:
        assert CaptureConfig(capture_interval_s=1).capture_interval_s == 1
        assert CaptureConfig(capture_interval_s=60).capture_interval_s == 60

    def test_max_points_equal_to_min_points_allowed(self) -> None:
        assert CaptureConfig(min_points=4, max_points=4).max_points == 4

    def test_constructor_validates(self) -> None:
        with pytest.raises(ConfigValidationError, match="BOUNDARY_MIN_POINTS"):
            CaptureConfig(min_points=1)
