"""Position capture: the position-source capability and the capture driver."""

from boundary_capture.capture.driver import (
    CaptureDriver,
    CaptureEvent,
    CaptureEventKind,
    CaptureMode,
    DriverState,
)
from boundary_capture.capture.position_source import (
    CallablePositionSource,
    PositionSource,
)

__all__ = [
    "CallablePositionSource",
    "CaptureDriver",
    "CaptureEvent",
    "CaptureEventKind",
    "CaptureMode",
    "DriverState",
    "PositionSource",
]
