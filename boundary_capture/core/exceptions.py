"""Unified boundary-capture exception taxonomy.

Every domain exception inherits from ``BoundaryError`` and carries
structured context fields so callers (typically a field UI) can decide
whether to prompt the operator, retry a fix, or surface a hard stop.

Taxonomy categories
-------------------
- ``ValidationError``   — malformed input (coordinates, point ids), never retryable.
- ``TransientError``    — environment failures (GPS timeout, no signal), retryable.
- ``PermanentError``    — state-machine refusals (closed session, locked point).
- ``ContractError``     — malformed snapshot / fix payloads, never retryable.

None of these is fatal: each one is a signal for the caller, not a
reason to abort the process.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and UI feedback.
"""

from __future__ import annotations


class BoundaryError(Exception):
    """Root of every error a capture screen may have to show the operator.

    Attributes:
        message: Text suitable for the operator or the field log.
        stage: Where it went wrong: ``geo_point``, ``boundary_session``,
            ``position_source``, ``config`` or ``export``.
        code: Stable upper-case code a UI can switch on.
        retryable: ``True`` when asking for another fix may help.
        correlation_id: The boundary session id, when one is known.
    """

    #: Stage used when the raiser does not pass one.
    default_stage: str = ""
    #: Code used when the raiser does not pass one.
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """``validation``, ``transient``, ``permanent`` or ``contract``, by class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Flatten into the payload listeners log and show; keys never change."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(BoundaryError):
    """Bad operator or sensor input: an off-globe coordinate, an unknown point id."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(BoundaryError):
    """The receiver let us down this time; the next fix may be fine."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(BoundaryError):
    """The session refuses the edit in its current status (closed, locked point)."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(BoundaryError):
    """A stored snapshot or fix payload does not have the shape we write."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class InvalidCoordinateError(ValueError, ValidationError):
    """Raised when a fix lies outside the WGS 84 range or has negative accuracy.

    Attributes:
        field_name: The offending field (``latitude``, ``longitude``, ``accuracy_m``).
        value: The rejected value.
    """

    default_stage = "geo_point"
    default_code = "INVALID_COORDINATE"

    def __init__(self, field_name: str, value: object, message: str) -> None:
        self.field_name = field_name
        self.value = value
        ValidationError.__init__(self, f"{field_name}={value!r}: {message}")


class InsufficientPointsError(ValidationError):
    """Raised when ``complete()`` is called before enough points exist.

    Attributes:
        point_count: Number of points currently in the session.
        min_points: Threshold that was required.
    """

    default_stage = "boundary_session"
    default_code = "INSUFFICIENT_POINTS"

    def __init__(self, point_count: int, min_points: int, **kwargs: object) -> None:
        self.point_count = point_count
        self.min_points = min_points
        super().__init__(
            f"Boundary needs at least {min_points} points to complete, has {point_count}",
            **kwargs,
        )


class SessionClosedError(PermanentError):
    """Raised when a mutation is attempted on a completed or verified session."""

    default_stage = "boundary_session"
    default_code = "SESSION_CLOSED"


class PointNotFoundError(ValidationError):
    """Raised when a point id does not belong to the session."""

    default_stage = "boundary_session"
    default_code = "POINT_NOT_FOUND"


class PointLockedError(PermanentError):
    """Raised when removal of an operator-locked point is attempted."""

    default_stage = "boundary_session"
    default_code = "POINT_LOCKED"


class PositionUnavailableError(TransientError):
    """Raised by a position source when no fix can be obtained.

    Attributes:
        reason: One of ``timeout``, ``permission_denied``, ``no_signal``,
            ``unavailable``.
    """

    default_stage = "position_source"
    default_code = "POSITION_UNAVAILABLE"

    TIMEOUT = "timeout"
    PERMISSION_DENIED = "permission_denied"
    NO_SIGNAL = "no_signal"
    UNAVAILABLE = "unavailable"

    def __init__(self, message: str = "", *, reason: str = UNAVAILABLE, **kwargs: object) -> None:
        self.reason = reason
        # Permission denial will not fix itself by retrying.
        if reason == self.PERMISSION_DENIED:
            kwargs.setdefault("retryable", False)
        super().__init__(message or f"Position unavailable ({reason})", **kwargs)

    def to_error_dict(self) -> dict[str, object]:
        payload = super().to_error_dict()
        payload["reason"] = self.reason
        return payload
