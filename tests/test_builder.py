from __future__ import annotations

import asyncio

import pytest

from conftest import FakeHost, settle, wait_until
from location_chain.behaviors import Behavior, IgnoreErrorBehavior, PermissionBehavior, ThrowIfProviderDisabledBehavior
from location_chain.builder import BuilderState
from location_chain.core import (
    ChainFinalizedError,
    EntryKind,
    LocationSample,
    PermissionDeniedError,
    ProviderRequiredError,
    StaleSampleError,
)
from location_chain.sources import GPS_PROVIDER, NETWORK_PROVIDER, PERMISSION_DENIED

DEFAULT = LocationSample(provider="default", latitude=0.0, longitude=0.0)


class FailingBehavior(Behavior):
    """Replace the wrapped request by a failure, counting executions."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.runs = 0

    def transform(self, upstream, params):
        async def failing():
            self.runs += 1
            raise self.error

        return failing


@pytest.mark.asyncio
async def test_empty_chain_returns_default(manager, source):
    operation = manager.builder().set_default_location(DEFAULT).build()

    assert await operation() is DEFAULT
    assert source.last_known_calls == []
    assert source.single_update_calls == []


@pytest.mark.asyncio
async def test_exhausted_chain_without_default_is_none(manager):
    operation = (
        manager.builder()
        .add_last_location(GPS_PROVIDER)
        .add_request_location(NETWORK_PROVIDER, 0.01)
        .build()
    )

    assert await operation() is None


@pytest.mark.asyncio
async def test_first_success_short_circuits(manager, source, make_sample):
    sample = make_sample(NETWORK_PROVIDER)
    source.set_last_known(sample)
    operation = (
        manager.builder()
        .add_last_location(GPS_PROVIDER)
        .add_last_location(NETWORK_PROVIDER)
        .add_request_location(GPS_PROVIDER)
        .set_default_location(DEFAULT)
        .build()
    )

    assert await operation() is sample
    assert source.last_known_calls == [GPS_PROVIDER, NETWORK_PROVIDER]
    assert source.single_update_calls == []


@pytest.mark.asyncio
async def test_fatal_error_aborts_chain_and_skips_default(manager, source, make_sample):
    source.set_last_known(make_sample(NETWORK_PROVIDER))
    failing = FailingBehavior(RuntimeError("boom"))
    operation = (
        manager.builder()
        .add_last_location(GPS_PROVIDER, None, failing)
        .add_last_location(NETWORK_PROVIDER)
        .set_default_location(DEFAULT)
        .build()
    )

    with pytest.raises(RuntimeError, match="boom"):
        await operation()
    assert failing.runs == 1
    assert source.last_known_calls == []


@pytest.mark.asyncio
async def test_timeout_then_empty_cache_then_live_fix(manager, source, make_sample):
    sample = make_sample(NETWORK_PROVIDER)
    operation = (
        manager.builder()
        .add_request_location(GPS_PROVIDER, 0.01)
        .add_last_location(GPS_PROVIDER)
        .add_request_location(NETWORK_PROVIDER, 1)
        .set_default_location(DEFAULT)
        .build()
    )
    task = asyncio.create_task(operation())

    await wait_until(lambda: source.listener_count(NETWORK_PROVIDER) == 1)
    source.push_location(sample)

    assert await task is sample
    assert source.single_update_calls == [GPS_PROVIDER, NETWORK_PROVIDER]
    assert source.last_known_calls == [GPS_PROVIDER]


@pytest.mark.asyncio
async def test_disabled_provider_falls_back_to_default(manager, source):
    source.set_provider_enabled(GPS_PROVIDER, False)
    operation = manager.builder().add_request_location(GPS_PROVIDER, 5).set_default_location(DEFAULT).build()

    assert await operation() is DEFAULT


@pytest.mark.asyncio
async def test_required_provider_disabled_is_fatal(manager, source):
    source.set_provider_enabled(GPS_PROVIDER, False)
    operation = (
        manager.builder()
        .add_request_location(GPS_PROVIDER, 5, ThrowIfProviderDisabledBehavior(manager))
        .set_default_location(DEFAULT)
        .build()
    )

    with pytest.raises(ProviderRequiredError):
        await operation()


@pytest.mark.asyncio
async def test_stale_cache_falls_through(manager, source, make_sample):
    source.set_last_known(make_sample(age=120))
    operation = manager.builder().add_last_location(GPS_PROVIDER, 60).set_default_location(DEFAULT).build()

    assert await operation() is DEFAULT


@pytest.mark.asyncio
async def test_ignored_error_moves_to_next_entry(manager, source, make_sample):
    sample = make_sample(NETWORK_PROVIDER)
    source.set_last_known(sample)
    operation = (
        manager.builder()
        .add_request_location(GPS_PROVIDER, None, IgnoreErrorBehavior(), FailingBehavior(RuntimeError("boom")))
        .add_last_location(NETWORK_PROVIDER)
        .build()
    )

    assert await operation() is sample


@pytest.mark.asyncio
async def test_unlisted_error_is_not_ignored(manager, source, make_sample):
    operation = (
        manager.builder()
        .add_last_location(GPS_PROVIDER, None, IgnoreErrorBehavior(StaleSampleError), FailingBehavior(KeyError("x")))
        .set_default_location(DEFAULT)
        .build()
    )

    with pytest.raises(KeyError):
        await operation()


@pytest.mark.asyncio
async def test_permission_denial_is_fatal_unless_ignored(manager, source, make_sample):
    source.set_last_known(make_sample(NETWORK_PROVIDER))
    host = FakeHost(
        ["A"],
        on_request=lambda permissions: manager.on_request_permissions_result(permissions, [PERMISSION_DENIED]),
    )
    gate = PermissionBehavior(manager, host, ["A"])

    strict = manager.builder().add_last_location(GPS_PROVIDER, None, gate).add_last_location(NETWORK_PROVIDER).build()
    with pytest.raises(PermissionDeniedError):
        await strict()

    lenient = (
        manager.builder()
        .add_last_location(GPS_PROVIDER, None, IgnoreErrorBehavior(PermissionDeniedError), gate)
        .add_last_location(NETWORK_PROVIDER)
        .build()
    )
    assert (await lenient()).provider == NETWORK_PROVIDER


@pytest.mark.asyncio
async def test_accept_empty_ends_chain_with_none(manager, source, make_sample):
    source.set_last_known(make_sample(NETWORK_PROVIDER))
    operation = (
        manager.builder()
        .add_last_location(GPS_PROVIDER, accept_empty=True)
        .add_last_location(NETWORK_PROVIDER)
        .set_default_location(DEFAULT)
        .build()
    )

    assert await operation() is None
    assert source.last_known_calls == [GPS_PROVIDER]


@pytest.mark.asyncio
async def test_entries_run_one_after_another(manager, source, make_sample):
    sample = make_sample()
    operation = manager.builder().add_request_location(GPS_PROVIDER).add_last_location(NETWORK_PROVIDER).build()
    task = asyncio.create_task(operation())
    await settle()

    assert source.last_known_calls == []
    source.push_location(sample)

    assert await task is sample
    assert source.last_known_calls == []


@pytest.mark.asyncio
async def test_cancelling_chain_releases_active_request(manager, source):
    operation = manager.builder().add_request_location(GPS_PROVIDER).add_last_location(NETWORK_PROVIDER).build()
    task = asyncio.create_task(operation())
    await settle()

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert source.listener_count() == 0
    assert source.remove_calls == 1
    assert source.last_known_calls == []


@pytest.mark.asyncio
async def test_built_operation_can_run_repeatedly(manager, source, make_sample):
    builder = manager.builder().add_last_location(GPS_PROVIDER).set_default_location(DEFAULT)
    operation = builder.build()

    assert await operation() is DEFAULT
    sample = make_sample()
    source.set_last_known(sample)
    assert await operation() is sample
    assert await builder.build()() is sample


def test_builder_rejects_changes_after_finalize(manager):
    builder = manager.builder().add_last_location(GPS_PROVIDER, 60).add_request_location(NETWORK_PROVIDER, 5)
    assert builder.state is BuilderState.BUILDING

    chain = builder.finalize()

    assert builder.state is BuilderState.FINALIZED
    assert builder.finalize() is chain
    assert [entry.kind for entry in chain.entries] == [EntryKind.CACHED, EntryKind.LIVE]
    assert chain.providers() == [GPS_PROVIDER, NETWORK_PROVIDER]
    with pytest.raises(ChainFinalizedError):
        builder.add_last_location(GPS_PROVIDER)
    with pytest.raises(ChainFinalizedError):
        builder.add_request_location(GPS_PROVIDER)
    with pytest.raises(ChainFinalizedError):
        builder.set_default_location(DEFAULT)
    assert len(chain.entries) == 2


def test_last_default_wins(manager):
    other = LocationSample(provider="default", latitude=1.0, longitude=1.0)
    chain = manager.builder().set_default_location(DEFAULT).set_default_location(other).finalize()

    assert chain.default is other
