"""Contracts for the platform collaborators the manager talks to."""

from __future__ import annotations

from typing import Any, Protocol, Sequence, runtime_checkable

from ..core.models import LocationSample

PERMISSION_GRANTED = 0
PERMISSION_DENIED = -1

RESULT_OK = -1
RESULT_CANCELED = 0

FINE_LOCATION = "ACCESS_FINE_LOCATION"
COARSE_LOCATION = "ACCESS_COARSE_LOCATION"
LOCATION_PERMISSIONS = (FINE_LOCATION, COARSE_LOCATION)

GPS_PROVIDER = "gps"
NETWORK_PROVIDER = "network"
PASSIVE_PROVIDER = "passive"


class LocationListener(Protocol):
    """Callbacks a source invokes, possibly from a foreign thread."""

    def on_location_changed(self, sample: LocationSample | None) -> None: ...

    def on_provider_disabled(self, provider: str) -> None: ...

    def on_provider_enabled(self, provider: str) -> None: ...


@runtime_checkable
class LocationSource(Protocol):
    """The platform location service."""

    def get_all_providers(self) -> list[str]: ...

    def is_provider_enabled(self, provider: str) -> bool: ...

    def get_last_known(self, provider: str) -> LocationSample | None: ...

    def request_single_update(self, provider: str, listener: LocationListener) -> None: ...

    def request_location_updates(
        self,
        provider: str,
        min_time: float,
        min_distance: float,
        listener: LocationListener,
    ) -> None: ...

    def remove_updates(self, listener: LocationListener) -> None: ...


class PermissionHost(Protocol):
    """UI layer able to check and request runtime permissions.

    Results come back through ``LocationManager.on_request_permissions_result``.
    """

    runtime_permissions: bool

    def get_denied_permissions(self) -> Sequence[str]: ...

    def request_permissions(self, permissions: Sequence[str]) -> None: ...


class ResolutionHost(Protocol):
    """UI layer able to show settings and resolution screens.

    Outcomes come back through ``LocationManager.on_activity_result``.
    """

    def start_settings_activity(self) -> None: ...

    def start_resolution(self, resolution: Any) -> None: ...


class SettingsClient(Protocol):
    """Location settings service (the resolution API).

    ``check_location_settings`` returns when the settings are satisfied and
    raises :class:`~location_chain.core.ResolutionRequiredError` when the user
    has to act.
    """

    async def check_location_settings(self) -> None: ...
