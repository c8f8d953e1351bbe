"""Error hierarchy and classification for location requests."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Any


class ErrorKind(enum.Enum):
    """Closed set of tags every error inside a request maps to."""

    DISABLED_SOURCE = "disabled_source"
    STALE_SAMPLE = "stale_sample"
    NO_CACHED_SAMPLE = "no_cached_sample"
    TIMEOUT = "timeout"
    PERMISSION_DENIED = "permission_denied"
    SOURCE_UNAVAILABLE = "source_unavailable"
    USER_IGNORABLE = "user_ignorable"
    FATAL = "fatal"


@dataclass(frozen=True, slots=True)
class Classification:
    """Tag attached to an error.

    ``category`` is only set for ``USER_IGNORABLE`` and holds the kind of the
    error that was suppressed.
    """

    kind: ErrorKind
    category: ErrorKind | None = None

    def as_dict(self) -> dict:
        payload = {"kind": self.kind.value}
        if self.category is not None:
            payload["category"] = self.category.value
        return payload


class LocationError(RuntimeError):
    """Base class for errors raised while acquiring a location."""

    kind = ErrorKind.FATAL

    def __init__(
        self,
        message: str,
        *,
        details: dict | None = None,
        classification: Classification | None = None,
    ):
        super().__init__(message)
        self.details = details or {}
        self.classification = classification or Classification(self.kind)

    @classmethod
    def ignorable(cls, cause: BaseException) -> "LocationError":
        """Wrap ``cause`` so that a chain treats it as "skip this entry"."""

        error = cls(
            str(cause) or type(cause).__name__,
            details={"suppressed": type(cause).__name__},
            classification=Classification(ErrorKind.USER_IGNORABLE, classify(cause).kind),
        )
        error.__cause__ = cause
        return error

    def as_dict(self) -> dict:
        """Return a serializable representation."""
        payload: dict[str, Any] = {
            "message": str(self),
            "error": type(self).__name__,
            "classification": self.classification.as_dict(),
        }
        if self.details:
            payload["details"] = self.details
        return payload


class ProviderDisabledError(LocationError):
    """Raised when the provider is disabled on the device."""

    kind = ErrorKind.DISABLED_SOURCE

    def __init__(self, provider: str):
        super().__init__(f"The {provider} provider is disabled", details={"provider": provider})
        self.provider = provider


class ProviderRequiredError(LocationError):
    """Raised when a provider that must be enabled is disabled."""

    def __init__(self, provider: str):
        super().__init__(
            f"The {provider} provider is required but disabled",
            details={"provider": provider},
        )
        self.provider = provider


class StaleSampleError(LocationError):
    """Raised when the cached sample is older than allowed."""

    kind = ErrorKind.STALE_SAMPLE

    def __init__(self, sample, age: float):
        super().__init__(
            "The location is too old",
            details={"provider": sample.provider, "age_seconds": round(age, 3)},
        )
        self.sample = sample
        self.age = age


class NoCachedSampleError(LocationError):
    """Raised when the provider holds no last known location."""

    kind = ErrorKind.NO_CACHED_SAMPLE

    def __init__(self, provider: str):
        super().__init__(f"The {provider} provider has no last location", details={"provider": provider})
        self.provider = provider


class LocationTimeoutError(LocationError, TimeoutError):
    """Raised when a live request does not deliver in time."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, provider: str, timeout: float):
        super().__init__(
            f"No location from {provider} within {timeout:g}s",
            details={"provider": provider, "timeout_seconds": timeout},
        )
        self.provider = provider
        self.timeout = timeout


class PermissionDeniedError(LocationError, PermissionError):
    """Raised when the user denies a location permission."""

    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, permissions):
        permissions = list(permissions)
        super().__init__(
            f"User denied permissions: {permissions}",
            details={"permissions": permissions},
        )
        self.permissions = permissions


class ProviderNotAvailableError(LocationError):
    """Raised when there is no such provider on the device."""

    kind = ErrorKind.SOURCE_UNAVAILABLE

    def __init__(self, provider: str):
        super().__init__(f"There is no such provider: {provider}", details={"provider": provider})
        self.provider = provider


class LocationDisabledError(LocationError):
    """Raised when location stays disabled after asking the user to enable it."""

    kind = ErrorKind.SOURCE_UNAVAILABLE

    def __init__(self, message: str = "Location is disabled on the device"):
        super().__init__(message)


class ResolutionError(LocationError):
    """Raised when the resolution UI reports an unexpected outcome."""

    def __init__(self, message: str, *, result_code: int | None = None):
        super().__init__(message, details={"result_code": result_code} if result_code is not None else None)
        self.result_code = result_code


class ResolutionRequiredError(LocationError):
    """Raised by a settings client when the user has to resolve settings."""

    def __init__(self, resolution: Any, message: str = "Location settings need resolution"):
        super().__init__(message)
        self.resolution = resolution


class ChainFinalizedError(LocationError):
    """Raised when a finalized chain builder is modified."""

    def __init__(self):
        super().__init__("The request chain has already been built")


def classify(error: BaseException) -> Classification:
    """Map any exception to exactly one classification."""

    if isinstance(error, LocationError):
        return error.classification
    if isinstance(error, asyncio.TimeoutError):
        return Classification(ErrorKind.TIMEOUT)
    if isinstance(error, PermissionError):
        return Classification(ErrorKind.PERMISSION_DENIED)
    return Classification(ErrorKind.FATAL)
