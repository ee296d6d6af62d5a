"""Capture configuration loaded from environment variables.

All configuration values have defaults matching the field mappers'
observed behaviour.  ``from_env()`` raises ``ConfigValidationError`` if
any numeric value is out of its valid range, so bad configuration is
caught when the capture screen starts rather than mid-walk.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from boundary_capture.core.constants import (
    ABSOLUTE_MIN_POINTS,
    DEFAULT_AREA_WARNING_HA,
    DEFAULT_CAPTURE_INTERVAL_S,
    DEFAULT_MIN_POINTS,
    DEFAULT_POSITION_MAX_AGE_S,
    DEFAULT_POSITION_TIMEOUT_S,
    MAX_CAPTURE_INTERVAL_S,
    MIN_CAPTURE_INTERVAL_S,
)
from boundary_capture.core.exceptions import BoundaryError


class ConfigValidationError(BoundaryError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
        message: Human-readable description of the valid range.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class CaptureConfig:
    """Immutable capture configuration.

    Attributes:
        min_points: Points required before ``complete()`` succeeds.
        capture_interval_s: Auto-capture timer interval in seconds (1-60).
        position_timeout_s: How long a single fix request may take.
        position_max_age_s: Oldest cached fix the source may return (0 = fresh only).
        max_fix_accuracy_m: Reject fixes less accurate than this (0 = accept all).
        min_point_distance_m: Reject fixes closer than this to the last point
            (0 = accept all).
        max_points: Cap on points per boundary (0 = unlimited).
        area_warning_ha: Area (ha) above which a snapshot carries a warning.
    """

    min_points: int = DEFAULT_MIN_POINTS
    capture_interval_s: float = DEFAULT_CAPTURE_INTERVAL_S
    position_timeout_s: float = DEFAULT_POSITION_TIMEOUT_S
    position_max_age_s: float = DEFAULT_POSITION_MAX_AGE_S
    max_fix_accuracy_m: float = 0.0
    min_point_distance_m: float = 0.0
    max_points: int = 0
    area_warning_ha: float = DEFAULT_AREA_WARNING_HA

    def __post_init__(self) -> None:
        _validate(self)

    @classmethod
    def from_env(cls) -> CaptureConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range.
            ValueError: If a numeric environment variable cannot be
                parsed (e.g. ``CAPTURE_INTERVAL_S=abc``).
        """
        return cls(
            min_points=int(os.getenv("BOUNDARY_MIN_POINTS", str(DEFAULT_MIN_POINTS))),
            capture_interval_s=float(
                os.getenv("CAPTURE_INTERVAL_S", str(DEFAULT_CAPTURE_INTERVAL_S))
            ),
            position_timeout_s=float(
                os.getenv("POSITION_TIMEOUT_S", str(DEFAULT_POSITION_TIMEOUT_S))
            ),
            position_max_age_s=float(
                os.getenv("POSITION_MAX_AGE_S", str(DEFAULT_POSITION_MAX_AGE_S))
            ),
            max_fix_accuracy_m=float(os.getenv("MAX_FIX_ACCURACY_M", "0")),
            min_point_distance_m=float(os.getenv("MIN_POINT_DISTANCE_M", "0")),
            max_points=int(os.getenv("MAX_POINTS", "0")),
            area_warning_ha=float(os.getenv("AREA_WARNING_HA", str(DEFAULT_AREA_WARNING_HA))),
        )


def _validate(config: CaptureConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.min_points < ABSOLUTE_MIN_POINTS:
        raise ConfigValidationError(
            "BOUNDARY_MIN_POINTS",
            config.min_points,
            f"must be >= {ABSOLUTE_MIN_POINTS}",
        )

    if not MIN_CAPTURE_INTERVAL_S <= config.capture_interval_s <= MAX_CAPTURE_INTERVAL_S:
        raise ConfigValidationError(
            "CAPTURE_INTERVAL_S",
            config.capture_interval_s,
            f"must be between {MIN_CAPTURE_INTERVAL_S:g} and {MAX_CAPTURE_INTERVAL_S:g} (seconds)",
        )

    if config.position_timeout_s <= 0:
        raise ConfigValidationError(
            "POSITION_TIMEOUT_S",
            config.position_timeout_s,
            "must be > 0 (seconds)",
        )

    if config.position_max_age_s < 0:
        raise ConfigValidationError(
            "POSITION_MAX_AGE_S",
            config.position_max_age_s,
            "must be >= 0 (seconds)",
        )

    if config.max_fix_accuracy_m < 0:
        raise ConfigValidationError(
            "MAX_FIX_ACCURACY_M",
            config.max_fix_accuracy_m,
            "must be >= 0 (metres, 0 disables the filter)",
        )

    if config.min_point_distance_m < 0:
        raise ConfigValidationError(
            "MIN_POINT_DISTANCE_M",
            config.min_point_distance_m,
            "must be >= 0 (metres, 0 disables the filter)",
        )

    if config.max_points < 0:
        raise ConfigValidationError(
            "MAX_POINTS",
            config.max_points,
            "must be >= 0 (0 means unlimited)",
        )

    if config.max_points and config.max_points < config.min_points:
        raise ConfigValidationError(
            "MAX_POINTS",
            config.max_points,
            f"must be >= BOUNDARY_MIN_POINTS ({config.min_points}) or 0",
        )

    if config.area_warning_ha <= 0:
        raise ConfigValidationError(
            "AREA_WARNING_HA",
            config.area_warning_ha,
            "must be > 0 (hectares)",
        )
