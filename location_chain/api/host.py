"""Host side of the HTTP adapter: pending UI requests and the event loop."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from threading import Lock, Thread
from typing import Any, Iterable, Sequence

from ..core import LocationSample, Operation
from ..sources.base import PERMISSION_GRANTED

logger = logging.getLogger(__name__)


class HttpHost:
    """Permission and resolution host whose UI answers over HTTP.

    Requests raised by behaviors are queued in :meth:`pending` until a client
    posts the outcome back.
    """

    def __init__(self, denied_permissions: Iterable[str] = (), *, runtime_permissions: bool = True):
        self.runtime_permissions = runtime_permissions
        self._lock = Lock()
        self._denied = set(denied_permissions)
        self._pending: list[dict[str, Any]] = []

    def get_denied_permissions(self) -> list[str]:
        with self._lock:
            return sorted(self._denied)

    def request_permissions(self, permissions: Sequence[str]) -> None:
        self._add({"type": "permissions", "permissions": list(permissions)})

    def start_settings_activity(self) -> None:
        self._add({"type": "settings"})

    def start_resolution(self, resolution: Any) -> None:
        self._add({"type": "resolution", "resolution": resolution})

    def pending(self) -> list[dict[str, Any]]:
        with self._lock:
            return [dict(item) for item in self._pending]

    def record_permissions(self, permissions: Sequence[str], grant_results: Sequence[int]) -> None:
        """Remember grants and drop the matching pending request."""

        with self._lock:
            for name, code in zip(permissions, grant_results):
                if code == PERMISSION_GRANTED:
                    self._denied.discard(name)
                else:
                    self._denied.add(name)
            requested = set(permissions)
            self._pending = [
                item
                for item in self._pending
                if not (item["type"] == "permissions" and set(item["permissions"]) == requested)
            ]

    def record_activity_result(self) -> None:
        with self._lock:
            self._pending = [item for item in self._pending if item["type"] == "permissions"]

    def _add(self, item: dict[str, Any]) -> None:
        logger.info("Host request queued: %s", item["type"])
        with self._lock:
            self._pending.append(item)


class LoopThread:
    """Run an asyncio event loop on a daemon thread for synchronous callers."""

    def __init__(self, name: str = "location-chain-loop"):
        self.loop = asyncio.new_event_loop()
        self._thread = Thread(target=self._run, name=name, daemon=True)

    def start(self) -> "LoopThread":
        self._thread.start()
        return self

    def run(self, operation: Operation, timeout: float | None = None) -> LocationSample | None:
        """Execute ``operation`` on the loop and wait for its outcome.

        On timeout the operation is cancelled, releasing whatever it holds.
        """

        future = asyncio.run_coroutine_threadsafe(operation(), self.loop)
        try:
            return future.result(timeout)
        except FutureTimeoutError:
            future.cancel()
            raise

    def stop(self) -> None:
        if self.loop.is_running():
            self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()
