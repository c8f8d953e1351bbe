"""Duration helpers."""

from __future__ import annotations

from datetime import timedelta

from ..core.models import LocationTime


def to_seconds(value: LocationTime | timedelta | float | int | None) -> float | None:
    """Normalize the accepted duration shapes to seconds."""

    if value is None:
        return None
    if isinstance(value, LocationTime):
        seconds = value.total_seconds()
    elif isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value)
    else:
        raise TypeError(f"Unsupported duration: {value!r}")
    if seconds < 0:
        raise ValueError("Durations must not be negative")
    return seconds
