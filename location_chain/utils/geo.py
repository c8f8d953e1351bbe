"""Geospatial helpers."""

from __future__ import annotations

from math import atan2, cos, radians, sin, sqrt
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.models import LocationSample


EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the distance between two coordinates in meters."""

    phi1, phi2 = radians(lat1), radians(lat2)
    half_dphi = radians(lat2 - lat1) / 2
    half_dlambda = radians(lon2 - lon1) / 2

    a = sin(half_dphi) ** 2 + cos(phi1) * cos(phi2) * sin(half_dlambda) ** 2
    return EARTH_RADIUS_METERS * 2 * atan2(sqrt(a), sqrt(1 - a))


def sample_distance(first: "LocationSample", second: "LocationSample") -> float:
    """Distance in meters between two samples."""

    return haversine_distance(first.latitude, first.longitude, second.latitude, second.longitude)
