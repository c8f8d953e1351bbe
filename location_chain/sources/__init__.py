"""Location sources and host contracts."""

from .base import (
    COARSE_LOCATION,
    FINE_LOCATION,
    GPS_PROVIDER,
    LOCATION_PERMISSIONS,
    NETWORK_PROVIDER,
    PASSIVE_PROVIDER,
    PERMISSION_DENIED,
    PERMISSION_GRANTED,
    RESULT_CANCELED,
    RESULT_OK,
    LocationListener,
    LocationSource,
    PermissionHost,
    ResolutionHost,
    SettingsClient,
)
from .http import HttpLocationSource
from .memory import InMemoryLocationSource

__all__ = [
    "COARSE_LOCATION",
    "FINE_LOCATION",
    "GPS_PROVIDER",
    "LOCATION_PERMISSIONS",
    "NETWORK_PROVIDER",
    "PASSIVE_PROVIDER",
    "PERMISSION_DENIED",
    "PERMISSION_GRANTED",
    "RESULT_CANCELED",
    "RESULT_OK",
    "LocationListener",
    "LocationSource",
    "PermissionHost",
    "ResolutionHost",
    "SettingsClient",
    "HttpLocationSource",
    "InMemoryLocationSource",
]
