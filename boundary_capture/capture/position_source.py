"""PositionSource abstract base class.

Defines the capability the host environment must provide: "give me the
current best-effort coordinate, within a timeout, no older than a
maximum age".  The capture driver interacts exclusively with this
interface; it never knows whether a phone GNSS chip, a serial NMEA
receiver or a test double is behind it.

Lifecycle:
    1. ``open()``                  — acquire the sensor subscription.
    2. ``get_current_position()``  — one fix per call (may block up to timeout).
    3. ``close()``                 — release the subscription.

``close()`` must be safe to call more than once and after a failed
``open()``; the driver calls it on every exit path.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from boundary_capture.core.exceptions import PositionUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from boundary_capture.models.point import RawFix


class PositionSource(abc.ABC):
    """Abstract base class for position providers.

    Concrete implementations must override ``get_current_position``.
    ``open`` and ``close`` default to no-ops for sources without a
    subscription to manage.

    Example usage::

        source = MyReceiverSource(port="/dev/ttyUSB0")
        source.open()
        try:
            fix = source.get_current_position(timeout_s=10, max_age_s=0)
        finally:
            source.close()
    """

    def open(self) -> None:  # noqa: B027
        """Acquire the underlying sensor subscription."""

    def close(self) -> None:  # noqa: B027
        """Release the underlying sensor subscription.  Idempotent."""

    @abc.abstractmethod
    def get_current_position(self, timeout_s: float, max_age_s: float) -> RawFix:
        """Return the current best-effort fix.

        Args:
            timeout_s: Maximum time to wait for a fix, in seconds.
            max_age_s: Oldest cached fix acceptable, in seconds
                (``0`` requires a fresh fix).

        Returns:
            A ``RawFix``; coordinates are validated by the caller.

        Raises:
            PositionUnavailableError: On timeout, permission denial or
                loss of signal.
        """


class CallablePositionSource(PositionSource):
    """Adapter turning a plain function into a ``PositionSource``.

    The function receives ``(timeout_s, max_age_s)`` and returns a
    ``RawFix``.  I/O, runtime and value errors are mapped by
    ``as_position_unavailable``.
    """

    def __init__(self, fetch: Callable[[float, float], RawFix]) -> None:
        self._fetch = fetch

    def get_current_position(self, timeout_s: float, max_age_s: float) -> RawFix:
        try:
            return self._fetch(timeout_s, max_age_s)
        except PositionUnavailableError:
            raise
        except (OSError, RuntimeError, ValueError) as exc:
            raise as_position_unavailable(exc, "Position callback failed") from exc


def as_position_unavailable(exc: Exception, context: str) -> PositionUnavailableError:
    """Map a raw receiver failure onto ``PositionUnavailableError``.

    ``TimeoutError`` becomes ``timeout`` and ``PermissionError`` becomes
    ``permission_denied``; anything else is ``unavailable``.
    """
    if isinstance(exc, TimeoutError):
        reason = PositionUnavailableError.TIMEOUT
    elif isinstance(exc, PermissionError):
        reason = PositionUnavailableError.PERMISSION_DENIED
    else:
        reason = PositionUnavailableError.UNAVAILABLE
    return PositionUnavailableError(f"{context}: {exc}", reason=reason)
