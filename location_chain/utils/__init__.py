"""Utility helpers for location_chain."""

from .durations import to_seconds
from .geo import haversine_distance, sample_distance

__all__ = [
    "to_seconds",
    "haversine_distance",
    "sample_distance",
]
