"""Fallback chains of location requests."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from .behaviors import Behavior
from .core import (
    Chain,
    ChainFinalizedError,
    EntryKind,
    ErrorKind,
    LocationSample,
    Operation,
    RequestSpec,
    classify,
)
from .utils import to_seconds

if TYPE_CHECKING:
    from .manager import Duration, LocationManager

logger = logging.getLogger(__name__)

# Errors that make a chain move on to its next entry, per entry kind.
RECOVERABLE_KINDS: dict[EntryKind, frozenset[ErrorKind]] = {
    EntryKind.CACHED: frozenset({ErrorKind.NO_CACHED_SAMPLE, ErrorKind.STALE_SAMPLE, ErrorKind.USER_IGNORABLE}),
    EntryKind.LIVE: frozenset({ErrorKind.TIMEOUT, ErrorKind.DISABLED_SOURCE, ErrorKind.USER_IGNORABLE}),
}


class BuilderState(enum.Enum):
    BUILDING = "building"
    FINALIZED = "finalized"


class LocationRequestBuilder:
    """Accumulate cached and live requests into one fallback chain.

    Entries run in the order they were added. The first sample wins; errors
    listed in :data:`RECOVERABLE_KINDS` (and errors marked ignorable by an
    :class:`~location_chain.behaviors.IgnoreErrorBehavior`) move on to the
    next entry, any other error ends the chain. When every entry comes up
    empty the default location is returned, which may be ``None``.
    """

    def __init__(self, manager: "LocationManager"):
        self._manager = manager
        self._entries: list[RequestSpec] = []
        self._default: LocationSample | None = None
        self._chain: Chain | None = None

    @property
    def state(self) -> BuilderState:
        return BuilderState.BUILDING if self._chain is None else BuilderState.FINALIZED

    def add_last_location(
        self,
        provider: str,
        max_age: "Duration | None" = None,
        *behaviors: Behavior,
        accept_empty: bool = False,
    ) -> "LocationRequestBuilder":
        """Add the last known location of ``provider``.

        With ``accept_empty`` a provider without a last location ends the
        chain with ``None`` instead of falling through.
        """

        return self._append(
            RequestSpec(
                kind=EntryKind.CACHED,
                provider=provider,
                max_age=to_seconds(max_age),
                behaviors=behaviors,
                accept_empty=accept_empty,
            )
        )

    def add_request_location(
        self,
        provider: str,
        timeout: "Duration | None" = None,
        *behaviors: Behavior,
        accept_empty: bool = False,
    ) -> "LocationRequestBuilder":
        """Add a live request to ``provider``."""

        return self._append(
            RequestSpec(
                kind=EntryKind.LIVE,
                provider=provider,
                timeout=to_seconds(timeout),
                behaviors=behaviors,
                accept_empty=accept_empty,
            )
        )

    def set_default_location(self, location: LocationSample | None) -> "LocationRequestBuilder":
        """Location returned when every entry comes up empty."""

        self._ensure_building()
        self._default = location
        return self

    def finalize(self) -> Chain:
        """Freeze the accumulated entries; later modifications raise."""

        if self._chain is None:
            self._chain = Chain(entries=tuple(self._entries), default=self._default)
            logger.debug("Finalized chain %s", [entry.describe() for entry in self._chain.entries])
        return self._chain

    def build(self) -> Operation:
        """Return the lazy operation running the chain."""

        return ChainExecutor(self._manager, self.finalize()).run

    def _append(self, entry: RequestSpec) -> "LocationRequestBuilder":
        self._ensure_building()
        self._entries.append(entry)
        return self

    def _ensure_building(self) -> None:
        if self._chain is not None:
            raise ChainFinalizedError()


class ChainExecutor:
    """Run the entries of a chain one after another."""

    def __init__(self, manager: "LocationManager", chain: Chain):
        self.manager = manager
        self.chain = chain

    def entry_operation(self, entry: RequestSpec) -> Operation:
        if entry.kind is EntryKind.CACHED:
            return self.manager.get_last_location(entry.provider, entry.max_age, *entry.behaviors)
        return self.manager.request_location(entry.provider, entry.timeout, *entry.behaviors)

    async def run(self) -> LocationSample | None:
        for index, entry in enumerate(self.chain.entries, start=1):
            try:
                sample = await self.entry_operation(entry)()
            except Exception as exc:
                kind = classify(exc).kind
                if kind not in RECOVERABLE_KINDS[entry.kind]:
                    logger.info("Chain aborted at entry %s (%s): %s", index, entry.describe(), exc)
                    raise
                logger.debug("Entry %s (%s) skipped: %s", index, entry.describe(), kind.value)
                continue

            if sample is not None:
                logger.debug("Entry %s (%s) produced a location", index, entry.describe())
                return sample
            if entry.accept_empty:
                logger.debug("Entry %s (%s) ended the chain without a location", index, entry.describe())
                return None

        logger.debug("Chain exhausted; returning default location")
        return self.chain.default
