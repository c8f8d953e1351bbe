"""Domain models used throughout location_chain."""

from __future__ import annotations

import enum
import time as _time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Sequence


class TimeUnit(enum.Enum):
    """Units accepted by :class:`LocationTime`, valued in seconds."""

    MILLISECONDS = 0.001
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0


@dataclass(frozen=True, slots=True)
class LocationTime:
    """A duration used for sample ages and request timeouts."""

    time: float
    unit: TimeUnit = TimeUnit.SECONDS

    def total_seconds(self) -> float:
        return self.time * self.unit.value

    @classmethod
    def one_day(cls) -> "LocationTime":
        return cls(1, TimeUnit.DAYS)

    @classmethod
    def one_hour(cls) -> "LocationTime":
        return cls(1, TimeUnit.HOURS)


@dataclass(frozen=True, slots=True)
class LocationSample:
    """One location fix produced by a provider.

    ``elapsed_realtime`` is measured on the monotonic clock of the manager
    that reads the sample and is the only field used to compute its age.
    """

    provider: str
    latitude: float
    longitude: float
    accuracy: float | None = None
    time: float = field(default_factory=_time.time)
    elapsed_realtime: float = field(default_factory=_time.monotonic)
    extras: Mapping[str, Any] = field(default_factory=dict)

    def age(self, now: float) -> float:
        return now - self.elapsed_realtime

    def as_dict(self) -> dict:
        payload = {
            "provider": self.provider,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "time": self.time,
        }
        if self.extras:
            payload["extras"] = dict(self.extras)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], *, provider: str | None = None) -> "LocationSample":
        if not isinstance(payload, Mapping):
            raise ValueError("A location must be a JSON object")

        def parse_float(value: object) -> float | None:
            if value in (None, ""):
                return None
            try:
                return float(value)  # type: ignore[arg-type]
            except (TypeError, ValueError):
                return None

        latitude = parse_float(payload.get("latitude", payload.get("lat")))
        longitude = parse_float(payload.get("longitude", payload.get("lon", payload.get("lng"))))
        if latitude is None or longitude is None:
            raise ValueError("A location needs numeric latitude and longitude")

        kwargs: dict[str, Any] = {
            "provider": str(payload.get("provider") or provider or "unknown"),
            "latitude": latitude,
            "longitude": longitude,
            "accuracy": parse_float(payload.get("accuracy")),
        }
        timestamp = parse_float(payload.get("time"))
        if timestamp is not None:
            kwargs["time"] = timestamp
        extras = payload.get("extras")
        if isinstance(extras, Mapping):
            kwargs["extras"] = dict(extras)
        return cls(**kwargs)


@dataclass(frozen=True, slots=True)
class BehaviorParams:
    """Per-execution context passed to each behavior."""

    provider: str | None = None


Operation = Callable[[], Awaitable["LocationSample | None"]]
"""A lazily executed unit of work: nothing happens until it is called and awaited."""


class EntryKind(enum.Enum):
    CACHED = "cached"
    LIVE = "live"


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """One entry of a request chain."""

    kind: EntryKind
    provider: str
    max_age: float | None = None
    timeout: float | None = None
    behaviors: tuple = ()
    accept_empty: bool = False

    def describe(self) -> str:
        limit = self.max_age if self.kind is EntryKind.CACHED else self.timeout
        suffix = f" ({limit:g}s)" if limit is not None else ""
        return f"{self.kind.value}:{self.provider}{suffix}"


@dataclass(frozen=True, slots=True)
class Chain:
    """Ordered fallback sequence; the first entry has the highest priority."""

    entries: tuple[RequestSpec, ...]
    default: LocationSample | None = None

    def providers(self) -> list[str]:
        return [entry.provider for entry in self.entries]


@dataclass(frozen=True, slots=True)
class PermissionResult:
    """Permission callback delivered by the host."""

    permissions: tuple[str, ...]
    grant_results: tuple[int, ...]

    def matches(self, requested: Sequence[str]) -> bool:
        return frozenset(self.permissions) == frozenset(requested)


@dataclass(frozen=True, slots=True)
class ActivityResult:
    """Outcome of a settings or resolution screen delivered by the host."""

    result_code: int
    data: Mapping[str, Any] | None = None
