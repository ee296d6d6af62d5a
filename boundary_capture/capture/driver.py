"""Capture driver — turns a live position source into session mutations.

Two recording modes:

- ``MANUAL``: the operator calls ``capture_now()`` for each vertex.
- ``AUTO``:   a daemon timer thread calls ``capture_now()`` every
  ``interval_s`` seconds (default 5, bounds 1-60).

Driver states::

    READY ──start()──▶ RECORDING ──pause()──▶ PAUSED
      ▲                   │  ▲                  │
      │                   │  └────resume()──────┘
      └─────stop()────────┴─────────────────────┘

``stop()`` cancels the timer, waits for an in-flight tick and releases
the position source in a ``finally``.  ``recording()`` wraps start/stop
as a context manager so the release also happens on error paths.

Capture failures never raise: each call returns a ``CaptureEvent`` that
is also delivered to registered listeners.  The driver is the session's
single writer; ``capture_now()`` calls are serialised by a lock.
"""

from __future__ import annotations

import contextlib
import enum
import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

from boundary_capture.capture.position_source import as_position_unavailable
from boundary_capture.core.config import CaptureConfig, ConfigValidationError
from boundary_capture.core.constants import MAX_CAPTURE_INTERVAL_S, MIN_CAPTURE_INTERVAL_S
from boundary_capture.core.exceptions import (
    BoundaryError,
    ContractError,
    InvalidCoordinateError,
    PositionUnavailableError,
    SessionClosedError,
)
from boundary_capture.geometry.geodesic import haversine_distance_m

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from boundary_capture.capture.position_source import PositionSource
    from boundary_capture.models.point import GeoPoint
    from boundary_capture.models.snapshot import BoundarySnapshot
    from boundary_capture.session.boundary_session import BoundarySession

logger = logging.getLogger("boundary_capture.capture.driver")

# Rejection reasons carried on FIX_REJECTED events.
REJECT_ACCURACY = "accuracy"
REJECT_MIN_DISTANCE = "min_distance"
REJECT_MAX_POINTS = "max_points"

# Extra seconds allowed for an in-flight tick to finish during stop().
_JOIN_GRACE_S = 1.0


class CaptureMode(enum.Enum):
    """How fixes are turned into points."""

    MANUAL = "manual"
    AUTO = "auto"


class DriverState(enum.Enum):
    """Lifecycle of a capture driver."""

    READY = "ready"
    RECORDING = "recording"
    PAUSED = "paused"


class CaptureEventKind(enum.Enum):
    """Outcome of a single capture attempt."""

    POINT_ADDED = "point_added"
    POSITION_UNAVAILABLE = "position_unavailable"
    FIX_REJECTED = "fix_rejected"
    INVALID_FIX = "invalid_fix"
    SESSION_CLOSED = "session_closed"


@dataclass(frozen=True, slots=True)
class CaptureEvent:
    """Result of one capture attempt.

    Attributes:
        kind: What happened.
        point: The stored point (``POINT_ADDED``) or the rejected candidate
            (``FIX_REJECTED``).
        snapshot: Session snapshot after a successful add.
        error: The underlying error for failure kinds.
        reason: Rejection reason for ``FIX_REJECTED``, failure reason for
            ``POSITION_UNAVAILABLE``.
    """

    kind: CaptureEventKind
    point: GeoPoint | None = None
    snapshot: BoundarySnapshot | None = None
    error: BoundaryError | None = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is CaptureEventKind.POINT_ADDED


class CaptureDriver:
    """Drive a ``BoundarySession`` from a ``PositionSource``.

    Example usage::

        session = BoundarySession.create("North paddock")
        driver = CaptureDriver(session, source, mode=CaptureMode.AUTO)
        with driver.recording():
            ...  # walk the boundary
        snapshot = session.complete()
    """

    def __init__(
        self,
        session: BoundarySession,
        source: PositionSource | None,
        *,
        mode: CaptureMode = CaptureMode.MANUAL,
        config: CaptureConfig | None = None,
        interval_s: float | None = None,
    ) -> None:
        self._session = session
        self._source = source
        self._mode = mode
        self._config = config or CaptureConfig()
        self._interval_s = self._config.capture_interval_s if interval_s is None else interval_s
        if not MIN_CAPTURE_INTERVAL_S <= self._interval_s <= MAX_CAPTURE_INTERVAL_S:
            raise ConfigValidationError(
                "interval_s",
                self._interval_s,
                f"must be between {MIN_CAPTURE_INTERVAL_S:g} and "
                f"{MAX_CAPTURE_INTERVAL_S:g} (seconds)",
            )

        self._state = DriverState.READY
        self._state_lock = threading.Lock()
        self._capture_lock = threading.Lock()
        self._listeners: list[Callable[[CaptureEvent], None]] = []
        self._timer_thread: threading.Thread | None = None
        self._timer_stop: threading.Event | None = None
        self._source_open = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def session(self) -> BoundarySession:
        return self._session

    @property
    def mode(self) -> CaptureMode:
        return self._mode

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def interval_s(self) -> float:
        return self._interval_s

    @property
    def timer_running(self) -> bool:
        thread = self._timer_thread
        return thread is not None and thread.is_alive()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Callable[[CaptureEvent], None]) -> None:
        """Register a callback invoked with every ``CaptureEvent``."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[CaptureEvent], None]) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Acquire the position source and begin recording.

        No-op if already ``RECORDING``; from ``PAUSED`` this resumes.
        If the source cannot be opened a ``POSITION_UNAVAILABLE`` event is
        emitted and the driver stays ``READY``.
        """
        failure: CaptureEvent | None = None
        with self._state_lock:
            if self._state is DriverState.RECORDING:
                return
            if self._state is DriverState.PAUSED:
                self._resume_locked()
                return

            if self._source is not None:
                failure = self._open_source_locked(self._source)

            if failure is None:
                self._state = DriverState.RECORDING
                if self._mode is CaptureMode.AUTO:
                    self._start_timer_locked()
                logger.info(
                    "Capture started | session=%s | mode=%s | interval=%.0f s",
                    self._session.session_id,
                    self._mode.value,
                    self._interval_s,
                )

        if failure is not None:
            self._notify(failure)

    def pause(self) -> None:
        """Suspend auto-capture, keeping the source subscription.  Only from RECORDING."""
        with self._state_lock:
            if self._state is not DriverState.RECORDING:
                return
            thread = self._cancel_timer_locked()
            self._state = DriverState.PAUSED
        self._join(thread)
        logger.info("Capture paused | session=%s", self._session.session_id)

    def resume(self) -> None:
        """Resume from ``PAUSED``; no-op otherwise."""
        with self._state_lock:
            if self._state is DriverState.PAUSED:
                self._resume_locked()

    def stop(self) -> None:
        """Cancel the timer and release the position source.  Idempotent.

        The source is closed even if waiting for the timer thread fails.
        """
        with self._state_lock:
            if self._state is DriverState.READY and not self._source_open:
                return
            thread = self._cancel_timer_locked()
            self._state = DriverState.READY
        try:
            self._join(thread)
        finally:
            with self._state_lock:
                self._release_source()
        logger.info(
            "Capture stopped | session=%s | points=%d",
            self._session.session_id,
            len(self._session),
        )

    @contextlib.contextmanager
    def recording(self) -> Iterator[CaptureDriver]:
        """Scope a recording: ``start()`` on entry, ``stop()`` on every exit."""
        self.start()
        try:
            yield self
        finally:
            self.stop()

    def finish(self, min_points: int | None = None) -> BoundarySnapshot:
        """Stop capturing and complete the session.

        Raises:
            InsufficientPointsError: If the session has too few points
                (the driver is still stopped).
            SessionClosedError: If the session was already closed.
        """
        self.stop()
        return self._session.complete(min_points)

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def capture_now(self) -> CaptureEvent:
        """Fetch one fix and add it to the session.

        Never raises for capture failures; inspect the returned event.
        """
        with self._capture_lock:
            event = self._capture()
        self._notify(event)
        return event

    def tick(self) -> CaptureEvent:
        """One auto-capture step (what the timer thread calls)."""
        return self.capture_now()

    def _capture(self) -> CaptureEvent:
        session = self._session
        cfg = self._config

        if session.status.is_closed:
            err = SessionClosedError(
                f"Boundary {session.session_id} is {session.status.value}",
                correlation_id=session.session_id,
            )
            return CaptureEvent(CaptureEventKind.SESSION_CLOSED, error=err)

        if cfg.max_points and len(session) >= cfg.max_points:
            logger.warning(
                "Fix rejected | session=%s | reason=%s | limit=%d",
                session.session_id,
                REJECT_MAX_POINTS,
                cfg.max_points,
            )
            return CaptureEvent(CaptureEventKind.FIX_REJECTED, reason=REJECT_MAX_POINTS)

        if self._source is None:
            err = PositionUnavailableError(
                "No position source is available",
                reason=PositionUnavailableError.UNAVAILABLE,
                correlation_id=session.session_id,
            )
            logger.warning(
                "Position unavailable | session=%s | reason=no_source", session.session_id
            )
            return CaptureEvent(
                CaptureEventKind.POSITION_UNAVAILABLE, error=err, reason=err.reason
            )

        try:
            fix = self._source.get_current_position(
                cfg.position_timeout_s, cfg.position_max_age_s
            )
        except PositionUnavailableError as exc:
            return self._unavailable(exc)
        except (OSError, RuntimeError) as raw:
            # TimeoutError and PermissionError are OSError subclasses.
            exc = as_position_unavailable(raw, "Position source failed")
            exc.__cause__ = raw
            return self._unavailable(exc)

        try:
            candidate = fix.to_point()
        except (InvalidCoordinateError, ContractError) as exc:
            logger.warning("Invalid fix | session=%s | %s", session.session_id, exc.message)
            return CaptureEvent(CaptureEventKind.INVALID_FIX, error=exc)

        if cfg.max_fix_accuracy_m and candidate.accuracy_m > cfg.max_fix_accuracy_m:
            logger.warning(
                "Fix rejected | session=%s | reason=%s | accuracy=%.1f m | limit=%.1f m",
                session.session_id,
                REJECT_ACCURACY,
                candidate.accuracy_m,
                cfg.max_fix_accuracy_m,
            )
            return CaptureEvent(
                CaptureEventKind.FIX_REJECTED, point=candidate, reason=REJECT_ACCURACY
            )

        last = session.last_point
        if cfg.min_point_distance_m and last is not None:
            distance = haversine_distance_m(last, candidate)
            if distance < cfg.min_point_distance_m:
                logger.debug(
                    "Fix rejected | session=%s | reason=%s | distance=%.1f m",
                    session.session_id,
                    REJECT_MIN_DISTANCE,
                    distance,
                )
                return CaptureEvent(
                    CaptureEventKind.FIX_REJECTED, point=candidate, reason=REJECT_MIN_DISTANCE
                )

        try:
            stored = session.add_point(candidate)
        except SessionClosedError as exc:
            return CaptureEvent(CaptureEventKind.SESSION_CLOSED, error=exc)

        return CaptureEvent(
            CaptureEventKind.POINT_ADDED, point=stored, snapshot=session.snapshot()
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unavailable(self, exc: PositionUnavailableError) -> CaptureEvent:
        session_id = self._session.session_id
        exc.correlation_id = exc.correlation_id or session_id
        logger.warning(
            "Position unavailable | session=%s | reason=%s | %s",
            session_id,
            exc.reason,
            exc.message,
        )
        return CaptureEvent(CaptureEventKind.POSITION_UNAVAILABLE, error=exc, reason=exc.reason)

    def _notify(self, event: CaptureEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(
                    "Capture listener failed | session=%s | event=%s",
                    self._session.session_id,
                    event.kind.value,
                )

    def _open_source_locked(self, source: PositionSource) -> CaptureEvent | None:
        try:
            source.open()
        except PositionUnavailableError as exc:
            error = exc
        except (OSError, RuntimeError) as raw:
            error = as_position_unavailable(raw, "Position source failed to open")
            error.__cause__ = raw
        else:
            self._source_open = True
            return None

        self._release_source()
        logger.warning(
            "Position source could not be opened | session=%s | reason=%s",
            self._session.session_id,
            error.reason,
        )
        return CaptureEvent(CaptureEventKind.POSITION_UNAVAILABLE, error=error, reason=error.reason)

    def _resume_locked(self) -> None:
        self._state = DriverState.RECORDING
        if self._mode is CaptureMode.AUTO:
            self._start_timer_locked()
        logger.info("Capture resumed | session=%s", self._session.session_id)

    def _start_timer_locked(self) -> None:
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run_timer,
            args=(stop_event,),
            name=f"boundary-capture-{self._session.session_id[:8]}",
            daemon=True,
        )
        self._timer_stop = stop_event
        self._timer_thread = thread
        thread.start()

    def _cancel_timer_locked(self) -> threading.Thread | None:
        if self._timer_stop is not None:
            self._timer_stop.set()
        thread = self._timer_thread
        self._timer_stop = None
        self._timer_thread = None
        return thread

    def _join(self, thread: threading.Thread | None) -> None:
        if thread is None or thread is threading.current_thread():
            return
        thread.join(timeout=self._config.position_timeout_s + _JOIN_GRACE_S)
        if thread.is_alive():
            logger.warning(
                "Auto-capture thread did not exit in time | session=%s",
                self._session.session_id,
            )

    def _release_source(self) -> None:
        if self._source is None:
            return
        try:
            self._source.close()
        finally:
            self._source_open = False

    def _run_timer(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval_s):
            try:
                self.tick()
            except Exception:
                # Keep the timer alive; the next tick may succeed.
                logger.exception("Auto-capture tick failed | session=%s", self._session.session_id)
