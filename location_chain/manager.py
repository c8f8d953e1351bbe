"""Asynchronous facade over a platform location source."""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import timedelta
from threading import Lock
from typing import Any, AsyncIterator, Callable, Mapping, Sequence

from .behaviors import Behavior, apply_behaviors
from .builder import LocationRequestBuilder
from .core import (
    ActivityResult,
    BehaviorParams,
    ErrorKind,
    LocationError,
    LocationSample,
    LocationTime,
    LocationTimeoutError,
    NoCachedSampleError,
    Operation,
    PermissionResult,
    ProviderDisabledError,
    StaleSampleError,
)
from .relay import EventRelay
from .sources.base import LocationSource
from .utils import to_seconds

logger = logging.getLogger(__name__)

Duration = LocationTime | timedelta | float | int


class ListenerRegistration:
    """Handle for a listener registered with the source.

    ``cancel`` deregisters the listener the first time it is called and does
    nothing afterwards.
    """

    def __init__(self, source: LocationSource, listener: Any):
        self._source = source
        self._listener = listener
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._source.remove_updates(self._listener)


class _SingleUpdateListener:
    """Resolve a future with the first fix or a disabled-provider error."""

    def __init__(self, loop: asyncio.AbstractEventLoop, provider: str):
        self._loop = loop
        self.provider = provider
        self.future: asyncio.Future[LocationSample | None] = loop.create_future()

    def on_location_changed(self, sample: LocationSample | None) -> None:
        self._call(self._settle, sample, None)

    def on_provider_disabled(self, provider: str) -> None:
        if provider == self.provider:
            self._call(self._settle, None, ProviderDisabledError(provider))

    def on_provider_enabled(self, provider: str) -> None:
        pass

    def _call(self, callback: Callable[..., None], *args: Any) -> None:
        if not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, *args)

    def _settle(self, sample: LocationSample | None, error: BaseException | None) -> None:
        if self.future.done():
            return
        if error is not None:
            self.future.set_exception(error)
        else:
            self.future.set_result(sample)


class _UpdatesListener(_SingleUpdateListener):
    """Feed every fix into a queue until the provider is disabled."""

    def __init__(self, loop: asyncio.AbstractEventLoop, provider: str):
        super().__init__(loop, provider)
        self.queue: asyncio.Queue[LocationSample | BaseException] = asyncio.Queue()

    def on_location_changed(self, sample: LocationSample | None) -> None:
        if sample is not None:
            self._call(self.queue.put_nowait, sample)

    def on_provider_disabled(self, provider: str) -> None:
        if provider == self.provider:
            self._call(self.queue.put_nowait, ProviderDisabledError(provider))


class LocationManager:
    """Build lazily executed location operations over a :class:`LocationSource`.

    The manager also owns the relays through which the host delivers
    permission results and settings/resolution outcomes; behaviors created
    for this manager wait on them.
    """

    def __init__(self, source: LocationSource, *, clock: Callable[[], float] = time.monotonic):
        self.source = source
        self.clock = clock
        self.permission_results: EventRelay[PermissionResult] = EventRelay("permission result")
        self.activity_results: EventRelay[ActivityResult] = EventRelay("activity result")
        self._permission_state: dict[str, int] = {}
        self._state_lock = Lock()

    # -- unit requests -------------------------------------------------

    def cached_lookup(self, provider: str, max_age: Duration | None = None) -> Operation:
        """Operation reading the last known sample of ``provider``.

        Fails with :class:`NoCachedSampleError` when there is none and with
        :class:`StaleSampleError` when it is ``max_age`` old or older.
        """

        limit = to_seconds(max_age)

        async def lookup() -> LocationSample:
            sample = self.source.get_last_known(provider)
            if sample is None:
                raise NoCachedSampleError(provider)
            if limit is not None:
                age = sample.age(self.clock())
                if age >= limit:
                    raise StaleSampleError(sample, age)
            return sample

        return lookup

    def live_request(self, provider: str, timeout: Duration | None = None) -> Operation:
        """Operation waiting for the next fix of ``provider``.

        Fails with :class:`ProviderDisabledError` if the provider is or
        becomes disabled and with :class:`LocationTimeoutError` once
        ``timeout`` elapses. The listener is always deregistered exactly once.
        """

        limit = to_seconds(timeout)

        async def request() -> LocationSample | None:
            if not self.source.is_provider_enabled(provider):
                raise ProviderDisabledError(provider)

            listener = _SingleUpdateListener(asyncio.get_running_loop(), provider)
            self.source.request_single_update(provider, listener)
            registration = ListenerRegistration(self.source, listener)
            try:
                if limit is None:
                    return await listener.future
                try:
                    return await asyncio.wait_for(listener.future, limit)
                except asyncio.TimeoutError as exc:
                    raise LocationTimeoutError(provider, limit) from exc
            finally:
                registration.cancel()

        return request

    # -- public operations ---------------------------------------------

    def get_last_location(
        self,
        provider: str,
        max_age: Duration | None = None,
        *behaviors: Behavior,
    ) -> Operation:
        """Operation resolving to the last known sample, or ``None`` if there is none."""

        lookup = self.cached_lookup(provider, max_age)

        async def last_location() -> LocationSample | None:
            try:
                return await lookup()
            except NoCachedSampleError:
                return None

        return apply_behaviors(last_location, behaviors, BehaviorParams(provider))

    def request_location(
        self,
        provider: str,
        timeout: Duration | None = None,
        *behaviors: Behavior,
    ) -> Operation:
        """Operation resolving to the next sample delivered by ``provider``."""

        return apply_behaviors(self.live_request(provider, timeout), behaviors, BehaviorParams(provider))

    async def request_location_updates(
        self,
        provider: str,
        min_time: Duration = 0.0,
        min_distance: float = 0.0,
        *behaviors: Behavior,
    ) -> AsyncIterator[LocationSample]:
        """Yield every fix of ``provider`` until the iterator is closed.

        Behaviors run once, before the listener is registered. When they
        fail with an error marked ignorable the stream ends without items.
        """

        async def ready() -> None:
            return None

        try:
            await apply_behaviors(ready, behaviors, BehaviorParams(provider))()
        except LocationError as exc:
            if exc.classification.kind is not ErrorKind.USER_IGNORABLE:
                raise
            logger.debug("Updates from %s skipped: %s", provider, exc)
            return
        if not self.source.is_provider_enabled(provider):
            raise ProviderDisabledError(provider)

        listener = _UpdatesListener(asyncio.get_running_loop(), provider)
        self.source.request_location_updates(provider, to_seconds(min_time) or 0.0, min_distance, listener)
        registration = ListenerRegistration(self.source, listener)
        try:
            while True:
                item = await listener.queue.get()
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            registration.cancel()

    def builder(self) -> LocationRequestBuilder:
        """Start a new fallback chain bound to this manager."""
        return LocationRequestBuilder(self)

    # -- providers -----------------------------------------------------

    def get_all_providers(self) -> list[str]:
        return list(self.source.get_all_providers())

    def get_providers(self, enabled_only: bool = False) -> list[str]:
        providers = self.get_all_providers()
        if enabled_only:
            return [name for name in providers if self.source.is_provider_enabled(name)]
        return providers

    def get_provider(self, name: str) -> str | None:
        return name if name in self.get_all_providers() else None

    def is_provider_enabled(self, provider: str) -> bool:
        return self.source.is_provider_enabled(provider)

    # -- host ingress --------------------------------------------------

    @property
    def permission_state(self) -> dict[str, int]:
        """Last grant result per permission seen by this manager."""
        with self._state_lock:
            return dict(self._permission_state)

    def on_request_permissions_result(self, permissions: Sequence[str], grant_results: Sequence[int]) -> int:
        """Deliver a permission callback from the host to pending permission checks."""

        result = PermissionResult(tuple(permissions), tuple(int(code) for code in grant_results))
        with self._state_lock:
            self._permission_state.update(zip(result.permissions, result.grant_results))
        delivered = self.permission_results.publish(result)
        logger.debug("Permission result for %s reached %s waiter(s)", list(result.permissions), delivered)
        return delivered

    def on_activity_result(self, result_code: int, data: Mapping[str, Any] | None = None) -> int:
        """Deliver the outcome of a settings or resolution screen."""

        delivered = self.activity_results.publish(ActivityResult(int(result_code), data))
        logger.debug("Activity result %s reached %s waiter(s)", result_code, delivered)
        return delivered
