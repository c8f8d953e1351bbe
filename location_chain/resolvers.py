"""Flows that get a disabled provider enabled by the user."""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, Callable

from .core import (
    ActivityResult,
    LocationDisabledError,
    ProviderNotAvailableError,
    ResolutionError,
    ResolutionRequiredError,
)
from .sources.base import RESULT_CANCELED, RESULT_OK, ResolutionHost, SettingsClient

if TYPE_CHECKING:
    from .manager import LocationManager

logger = logging.getLogger(__name__)

LOCATION_USABLE_KEY = "location_usable"


class Resolver(abc.ABC):
    """Make sure a provider is enabled, involving the user when needed."""

    def __init__(self, manager: "LocationManager", host: ResolutionHost):
        self.manager = manager
        self.host = host

    @abc.abstractmethod
    async def resolve(self, provider: str) -> None:
        raise NotImplementedError

    def check_provider(self, provider: str) -> bool:
        if self.manager.get_provider(provider) is None:
            raise ProviderNotAvailableError(provider)
        return self.manager.is_provider_enabled(provider)

    async def wait_for_result(self, launch: Callable[[], None]) -> ActivityResult:
        return await self.manager.activity_results.wait_for(lambda _result: True, on_subscribed=launch)


class SettingsResolver(Resolver):
    """Send the user to the location settings screen.

    The screen reports ``RESULT_CANCELED`` when dismissed; the provider is
    checked again afterwards.
    """

    async def resolve(self, provider: str) -> None:
        if self.check_provider(provider):
            return

        logger.info("Provider %s disabled; opening location settings", provider)
        result = await self.wait_for_result(self.host.start_settings_activity)
        if result.result_code != RESULT_CANCELED:
            raise ResolutionError("Unknown result", result_code=result.result_code)
        if not self.check_provider(provider):
            raise LocationDisabledError()


class ServicesResolver(Resolver):
    """Use the location settings service and its resolution dialog."""

    def __init__(self, manager: "LocationManager", host: ResolutionHost, settings_client: SettingsClient):
        super().__init__(manager, host)
        self.settings_client = settings_client

    async def resolve(self, provider: str) -> None:
        try:
            await self.settings_client.check_location_settings()
            return
        except ResolutionRequiredError as exc:
            resolution = exc.resolution

        logger.info("Location settings for %s need resolution", provider)
        result = await self.wait_for_result(lambda: self.host.start_resolution(resolution))
        if not location_usable(result):
            raise LocationDisabledError()


def location_usable(result: ActivityResult) -> bool:
    """Read the resolution outcome, falling back to the result code."""

    if result.data and LOCATION_USABLE_KEY in result.data:
        return bool(result.data[LOCATION_USABLE_KEY])
    return result.result_code == RESULT_OK
