"""Location source backed by an HTTP geolocation endpoint."""

from __future__ import annotations

import logging
import time
from threading import Event, Lock, Thread

import requests

from ..config import SOURCE_CONFIG
from ..core.models import LocationSample
from .base import LocationListener

logger = logging.getLogger(__name__)


class HttpLocationSource:
    """Expose one provider whose fixes come from a JSON geolocation service.

    The service must answer ``GET <url>`` with an object holding ``lat``/``lon``
    (or ``latitude``/``longitude``) and optionally ``accuracy``. Requests run
    on worker threads; a failed request is reported to listeners as the
    provider being disabled.
    """

    _DEFAULT_HEADERS = {"User-Agent": "location-chain/1.0"}

    def __init__(
        self,
        url: str | None = None,
        *,
        provider: str | None = None,
        timeout: float | None = None,
        poll_interval: float = 30.0,
        session: requests.Session | None = None,
    ):
        self.url = url or SOURCE_CONFIG.http_url
        self.provider = provider or SOURCE_CONFIG.http_provider
        self.timeout = timeout if timeout is not None else SOURCE_CONFIG.http_timeout
        self.poll_interval = poll_interval
        self.session = session or requests.Session()
        self.enabled = bool(self.url)
        self._lock = Lock()
        self._last_known: LocationSample | None = None
        self._stops: dict[LocationListener, Event] = {}

    def get_all_providers(self) -> list[str]:
        return [self.provider]

    def is_provider_enabled(self, provider: str) -> bool:
        return provider == self.provider and self.enabled

    def get_last_known(self, provider: str) -> LocationSample | None:
        if provider != self.provider:
            return None
        with self._lock:
            return self._last_known

    def fetch(self) -> LocationSample:
        """Query the service once and remember the result."""

        response = self.session.get(self.url, headers=self._DEFAULT_HEADERS, timeout=self.timeout)
        response.raise_for_status()
        sample = LocationSample.from_dict(response.json(), provider=self.provider)
        with self._lock:
            self._last_known = sample
        return sample

    def request_single_update(self, provider: str, listener: LocationListener) -> None:
        self._start(provider, listener, repeat=None)

    def request_location_updates(
        self,
        provider: str,
        min_time: float,
        min_distance: float,
        listener: LocationListener,
    ) -> None:
        self._start(provider, listener, repeat=max(min_time, self.poll_interval))

    def remove_updates(self, listener: LocationListener) -> None:
        with self._lock:
            stop = self._stops.pop(listener, None)
        if stop is not None:
            stop.set()

    def _start(self, provider: str, listener: LocationListener, *, repeat: float | None) -> None:
        stop = Event()
        with self._lock:
            self._stops[listener] = stop
        Thread(
            target=self._run,
            args=(provider, listener, stop, repeat),
            name=f"http-location-{provider}",
            daemon=True,
        ).start()

    def _run(self, provider: str, listener: LocationListener, stop: Event, repeat: float | None) -> None:
        while not stop.is_set():
            started = time.monotonic()
            if provider != self.provider:
                sample = None
            else:
                try:
                    sample = self.fetch()
                except (requests.RequestException, ValueError) as exc:
                    logger.warning("Geolocation request to %s failed: %s", self.url, exc)
                    sample = None

            if stop.is_set():
                return
            if sample is None:
                listener.on_provider_disabled(provider)
                return
            listener.on_location_changed(sample)
            if repeat is None:
                return
            stop.wait(max(0.0, repeat - (time.monotonic() - started)))
