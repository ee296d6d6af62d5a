"""Boundary session state machine."""

from boundary_capture.session.boundary_session import BoundarySession

__all__ = ["BoundarySession"]
