"""In-memory location source for hosts that push fixes themselves."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock

from ..core.models import LocationSample
from ..utils import sample_distance
from .base import LocationListener

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Registration:
    provider: str
    single: bool
    min_time: float = 0.0
    min_distance: float = 0.0
    last_sample: LocationSample | None = None


class InMemoryLocationSource:
    """Location source whose providers and fixes are driven by the host.

    Fixes pushed with :meth:`push_location` update the last known location and
    are fanned out to registered listeners. Single-update registrations are
    dropped after their first delivery.
    """

    def __init__(self, providers: dict[str, bool] | None = None):
        self._lock = RLock()
        self._enabled: dict[str, bool] = dict(providers or {})
        self._last_known: dict[str, LocationSample] = {}
        self._listeners: dict[LocationListener, _Registration] = {}

    def add_provider(self, provider: str, *, enabled: bool = True) -> None:
        with self._lock:
            self._enabled[provider] = enabled

    def get_all_providers(self) -> list[str]:
        with self._lock:
            return list(self._enabled)

    def is_provider_enabled(self, provider: str) -> bool:
        with self._lock:
            return self._enabled.get(provider, False)

    def get_last_known(self, provider: str) -> LocationSample | None:
        with self._lock:
            return self._last_known.get(provider)

    def set_last_known(self, sample: LocationSample) -> None:
        with self._lock:
            self._last_known[sample.provider] = sample

    def request_single_update(self, provider: str, listener: LocationListener) -> None:
        with self._lock:
            self._listeners[listener] = _Registration(provider=provider, single=True)

    def request_location_updates(
        self,
        provider: str,
        min_time: float,
        min_distance: float,
        listener: LocationListener,
    ) -> None:
        with self._lock:
            self._listeners[listener] = _Registration(
                provider=provider,
                single=False,
                min_time=max(0.0, min_time),
                min_distance=max(0.0, min_distance),
            )

    def remove_updates(self, listener: LocationListener) -> None:
        with self._lock:
            self._listeners.pop(listener, None)

    def listener_count(self, provider: str | None = None) -> int:
        with self._lock:
            return sum(1 for reg in self._listeners.values() if provider is None or reg.provider == provider)

    def push_location(self, sample: LocationSample) -> int:
        """Record ``sample`` and deliver it; return the number of listeners notified."""

        with self._lock:
            self._last_known[sample.provider] = sample
            targets: list[LocationListener] = []
            for listener, registration in list(self._listeners.items()):
                if registration.provider != sample.provider or not self._accepts(registration, sample):
                    continue
                registration.last_sample = sample
                if registration.single:
                    del self._listeners[listener]
                targets.append(listener)

        logger.debug("Delivering %s fix to %s listener(s)", sample.provider, len(targets))
        for listener in targets:
            listener.on_location_changed(sample)
        return len(targets)

    def set_provider_enabled(self, provider: str, enabled: bool) -> None:
        with self._lock:
            self._enabled[provider] = enabled
            targets = [listener for listener, reg in self._listeners.items() if reg.provider == provider]

        for listener in targets:
            if enabled:
                listener.on_provider_enabled(provider)
            else:
                listener.on_provider_disabled(provider)

    @staticmethod
    def _accepts(registration: _Registration, sample: LocationSample) -> bool:
        previous = registration.last_sample
        if previous is None:
            return True
        if sample.elapsed_realtime - previous.elapsed_realtime < registration.min_time:
            return False
        return sample_distance(previous, sample) >= registration.min_distance
