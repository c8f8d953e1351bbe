from __future__ import annotations

import asyncio

import pytest

from location_chain.core import LocationSample
from location_chain.manager import LocationManager
from location_chain.sources import GPS_PROVIDER, NETWORK_PROVIDER, InMemoryLocationSource


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingSource(InMemoryLocationSource):
    """In-memory source that records which providers were queried."""

    def __init__(self, providers=None) -> None:
        super().__init__(providers)
        self.last_known_calls: list[str] = []
        self.single_update_calls: list[str] = []
        self.remove_calls = 0

    def get_last_known(self, provider):
        self.last_known_calls.append(provider)
        return super().get_last_known(provider)

    def request_single_update(self, provider, listener):
        self.single_update_calls.append(provider)
        super().request_single_update(provider, listener)

    def remove_updates(self, listener):
        self.remove_calls += 1
        super().remove_updates(listener)


class FakeHost:
    """Permission and resolution host that records what it was asked to show."""

    def __init__(self, denied=(), *, runtime_permissions: bool = True, on_request=None) -> None:
        self.denied = list(denied)
        self.runtime_permissions = runtime_permissions
        self.on_request = on_request
        self.requested: list[tuple[str, ...]] = []
        self.settings_opened = 0
        self.resolutions: list[object] = []

    def get_denied_permissions(self):
        return list(self.denied)

    def request_permissions(self, permissions):
        self.requested.append(tuple(permissions))
        if self.on_request is not None:
            self.on_request(permissions)

    def start_settings_activity(self):
        self.settings_opened += 1

    def start_resolution(self, resolution):
        self.resolutions.append(resolution)


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(condition, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def source() -> CountingSource:
    return CountingSource({GPS_PROVIDER: True, NETWORK_PROVIDER: True})


@pytest.fixture()
def manager(source: CountingSource, clock: FakeClock) -> LocationManager:
    return LocationManager(source, clock=clock)


@pytest.fixture()
def make_sample(clock: FakeClock):
    def factory(provider: str = GPS_PROVIDER, *, age: float = 0.0, latitude: float = 30.2672, longitude: float = -97.7431):
        return LocationSample(
            provider=provider,
            latitude=latitude,
            longitude=longitude,
            accuracy=5.0,
            elapsed_realtime=clock.now - age,
        )

    return factory
