"""Core utilities and shared infrastructure.

- config: Configuration loading and validation
- constants: Geodesic constants, tier thresholds, capture defaults
- exceptions: Custom exception hierarchy
"""
