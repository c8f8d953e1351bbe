"""Behaviors: decorators applied around a single location operation."""

from __future__ import annotations

import abc
import logging
from functools import reduce
from typing import TYPE_CHECKING, Iterable, Sequence

from .core import (
    BehaviorParams,
    ErrorKind,
    LocationError,
    Operation,
    PermissionDeniedError,
    ProviderRequiredError,
    classify,
)
from .resolvers import Resolver, ServicesResolver, SettingsResolver
from .sources.base import LOCATION_PERMISSIONS, PERMISSION_GRANTED, PermissionHost, ResolutionHost, SettingsClient

if TYPE_CHECKING:
    from .manager import LocationManager

logger = logging.getLogger(__name__)


class Behavior(abc.ABC):
    """Wrap an upstream operation without replacing it."""

    @abc.abstractmethod
    def transform(self, upstream: Operation, params: BehaviorParams) -> Operation:
        raise NotImplementedError


def apply_behaviors(operation: Operation, behaviors: Iterable[Behavior], params: BehaviorParams) -> Operation:
    """Wrap ``operation`` in ``behaviors``; the first one declared ends up outermost."""

    return reduce(lambda upstream, behavior: behavior.transform(upstream, params), reversed(list(behaviors)), operation)


class PermissionBehavior(Behavior):
    """Check location permissions, asking the host for the missing ones.

    The host answers later through
    :meth:`LocationManager.on_request_permissions_result`. Only a result for
    exactly the requested set of permissions is considered; the wrapped
    operation runs when every one of them was granted.
    """

    def __init__(
        self,
        manager: "LocationManager",
        host: PermissionHost,
        permissions: Sequence[str] = LOCATION_PERMISSIONS,
    ):
        self.manager = manager
        self.host = host
        self.permissions = tuple(permissions)

    def transform(self, upstream: Operation, params: BehaviorParams) -> Operation:
        async def checked():
            await self.check_permissions()
            return await upstream()

        return checked

    def denied_permissions(self) -> tuple[str, ...]:
        if not getattr(self.host, "runtime_permissions", True):
            return ()
        denied = set(self.host.get_denied_permissions())
        return tuple(name for name in self.permissions if name in denied)

    async def check_permissions(self) -> None:
        denied = self.denied_permissions()
        if not denied:
            return

        logger.info("Requesting location permissions %s", list(denied))
        result = await self.manager.permission_results.wait_for(
            lambda event: event.matches(denied),
            on_subscribed=lambda: self.host.request_permissions(denied),
        )
        granted = dict(zip(result.permissions, result.grant_results))
        if any(granted.get(name) != PERMISSION_GRANTED for name in denied):
            raise PermissionDeniedError(denied)


class IgnoreErrorBehavior(Behavior):
    """Turn matching failures into "skip this entry" for a request chain.

    ``categories`` holds exception classes and/or :class:`ErrorKind` tags.
    With no categories every error is ignored.
    """

    def __init__(self, *categories: type[BaseException] | ErrorKind):
        self.categories = categories

    def should_ignore(self, error: BaseException) -> bool:
        if not self.categories:
            return True
        kind = classify(error).kind
        for category in self.categories:
            if isinstance(category, ErrorKind):
                if kind is category:
                    return True
            elif isinstance(error, category):
                return True
        return False

    def transform(self, upstream: Operation, params: BehaviorParams) -> Operation:
        async def ignoring():
            try:
                return await upstream()
            except Exception as exc:
                if classify(exc).kind is ErrorKind.USER_IGNORABLE or not self.should_ignore(exc):
                    raise
                logger.debug("Ignoring %s from %s", type(exc).__name__, params.provider)
                raise LocationError.ignorable(exc) from exc

        return ignoring


class EnableLocationBehavior(Behavior):
    """Ask the user to enable the provider before running the operation."""

    def __init__(self, resolver: Resolver):
        self.resolver = resolver

    def transform(self, upstream: Operation, params: BehaviorParams) -> Operation:
        if params.provider is None:
            raise ValueError("EnableLocationBehavior needs a provider")

        async def enabled():
            await self.resolver.resolve(params.provider)
            return await upstream()

        return enabled

    @classmethod
    def create(
        cls,
        manager: "LocationManager",
        host: ResolutionHost,
        settings_client: SettingsClient | None = None,
    ) -> "EnableLocationBehavior":
        """Prefer the settings service when one is available."""

        if settings_client is not None:
            return cls(ServicesResolver(manager, host, settings_client))
        return cls(SettingsResolver(manager, host))


class ThrowIfProviderDisabledBehavior(Behavior):
    """Fail hard when the provider is disabled instead of skipping it."""

    def __init__(self, manager: "LocationManager"):
        self.manager = manager

    def transform(self, upstream: Operation, params: BehaviorParams) -> Operation:
        provider = params.provider

        async def required():
            if provider is not None and not self.manager.is_provider_enabled(provider):
                raise ProviderRequiredError(provider)
            try:
                return await upstream()
            except LocationError as exc:
                if classify(exc).kind is ErrorKind.DISABLED_SOURCE:
                    raise ProviderRequiredError(getattr(exc, "provider", provider)) from exc
                raise

        return required
