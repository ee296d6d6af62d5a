"""Shared helper functions used across models, session and driver."""

from __future__ import annotations

import math
from datetime import UTC, datetime

from boundary_capture.core.exceptions import ContractError


def utc_now() -> datetime:
    """Return the current timezone-aware UTC time (the default clock)."""
    return datetime.now(UTC)


def parse_timestamp(timestamp: object, *, field_name: str = "timestamp") -> datetime:
    """Coerce a timestamp payload into a timezone-aware ``datetime``.

    Accepts a ``datetime`` (naive values are taken as UTC), an ISO 8601
    string, or a POSIX epoch in seconds.  Empty strings and ``None``
    default to the current UTC time.

    Raises:
        ContractError: If the value cannot be interpreted as a timestamp.
    """
    if timestamp is None or timestamp == "":
        return utc_now()
    if isinstance(timestamp, datetime):
        return timestamp if timestamp.tzinfo is not None else timestamp.replace(tzinfo=UTC)
    if isinstance(timestamp, bool):
        msg = f"{field_name} must be a datetime, ISO string or epoch seconds, got bool"
        raise ContractError(msg, code="INVALID_TIMESTAMP")
    if isinstance(timestamp, int | float):
        if not math.isfinite(timestamp):
            msg = f"{field_name} must be finite, got {timestamp!r}"
            raise ContractError(msg, code="INVALID_TIMESTAMP")
        return datetime.fromtimestamp(timestamp, tz=UTC)
    if isinstance(timestamp, str):
        try:
            parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError as exc:
            msg = f"{field_name} is not ISO 8601: {timestamp!r}"
            raise ContractError(msg, code="INVALID_TIMESTAMP") from exc
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    msg = f"{field_name} has unsupported type {type(timestamp).__name__}"
    raise ContractError(msg, code="INVALID_TIMESTAMP")


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as ISO 8601, passing ``None`` through."""
    return value.isoformat() if value is not None else None


def require_keys(data: dict[str, object], keys: frozenset[str], *, context: str) -> None:
    """Raise ``ContractError`` if *data* lacks any of *keys*."""
    missing = keys - data.keys()
    if missing:
        msg = f"{context}: missing required key(s): {', '.join(sorted(missing))}"
        raise ContractError(msg, stage=context, code="PAYLOAD_MISSING_KEYS")
