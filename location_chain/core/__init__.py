"""Core domain primitives for location_chain."""

from .models import (
    ActivityResult,
    BehaviorParams,
    Chain,
    EntryKind,
    LocationSample,
    LocationTime,
    Operation,
    PermissionResult,
    RequestSpec,
    TimeUnit,
)
from .exceptions import (
    ChainFinalizedError,
    Classification,
    ErrorKind,
    LocationDisabledError,
    LocationError,
    LocationTimeoutError,
    NoCachedSampleError,
    PermissionDeniedError,
    ProviderDisabledError,
    ProviderNotAvailableError,
    ProviderRequiredError,
    ResolutionError,
    ResolutionRequiredError,
    StaleSampleError,
    classify,
)

__all__ = [
    "ActivityResult",
    "BehaviorParams",
    "Chain",
    "EntryKind",
    "LocationSample",
    "LocationTime",
    "Operation",
    "PermissionResult",
    "RequestSpec",
    "TimeUnit",
    "ChainFinalizedError",
    "Classification",
    "ErrorKind",
    "LocationDisabledError",
    "LocationError",
    "LocationTimeoutError",
    "NoCachedSampleError",
    "PermissionDeniedError",
    "ProviderDisabledError",
    "ProviderNotAvailableError",
    "ProviderRequiredError",
    "ResolutionError",
    "ResolutionRequiredError",
    "StaleSampleError",
    "classify",
]
