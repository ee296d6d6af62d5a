"""Field Boundary Capture.

Records an agricultural field boundary from a sequence of GPS fixes and
derives its area, perimeter, centroid and an accuracy trust tier.  The
resulting ``BoundarySnapshot`` is the single source of geometry for
report generators and map overlays.
"""

__version__ = "0.1.0"
