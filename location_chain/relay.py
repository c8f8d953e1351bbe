"""Broadcast relay for results the host delivers out of band."""

from __future__ import annotations

import asyncio
import itertools
import logging
from threading import Lock
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Token for one relay subscriber; ``dispose`` is idempotent."""

    __slots__ = ("_relay", "_token", "_disposed")

    def __init__(self, relay: "EventRelay", token: int):
        self._relay = relay
        self._token = token
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._relay._remove(self._token)


class EventRelay(Generic[T]):
    """Deliver each published event to every live subscriber.

    Events are not queued: publishing with no subscribers drops the event.
    ``publish`` may be called from any thread.
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = Lock()
        self._tokens = itertools.count()
        self._subscribers: dict[int, Callable[[T], None]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._subscribers[token] = callback
        return Subscription(self, token)

    def publish(self, event: T) -> int:
        """Deliver ``event``; return the number of subscribers reached.

        A failing subscriber is logged and does not stop delivery to the others.
        """

        with self._lock:
            callbacks = list(self._subscribers.values())
        if not callbacks:
            logger.debug("Dropping %s event with no subscribers", self.name)
        delivered = 0
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber of %s events failed", self.name)
                continue
            delivered += 1
        return delivered

    async def wait_for(
        self,
        predicate: Callable[[T], bool],
        *,
        on_subscribed: Callable[[], None] | None = None,
    ) -> T:
        """Suspend until an event satisfying ``predicate`` is published.

        ``on_subscribed`` runs once the subscription is live, so a host
        answering synchronously cannot be missed. The subscription is removed
        when the wait ends for any reason, cancellation included.
        """

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()

        def resolve(event: T) -> None:
            if not future.done() and predicate(event):
                future.set_result(event)

        def deliver(event: T) -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(resolve, event)

        subscription = self.subscribe(deliver)
        try:
            if on_subscribed is not None:
                on_subscribed()
            return await future
        finally:
            subscription.dispose()

    def _remove(self, token: int) -> None:
        with self._lock:
            self._subscribers.pop(token, None)
