"""Timestamp coercion helpers."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from .models import ErrorKind


class TimestampParseError(ValueError):
    """Raised when a value cannot be turned into an event timestamp."""

    kind = ErrorKind.TIMESTAMP_COERCION_FAILURE


def now() -> datetime:
    return datetime.now(UTC)


def coerce_timestamp(value: Any) -> datetime:
    """Coerce a datetime or ISO8601 string into a UTC datetime."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise TimestampParseError(f"invalid timestamp: {value!r}") from e
    else:
        raise TimestampParseError(f"unsupported timestamp type: {type(value).__name__}")

    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)
