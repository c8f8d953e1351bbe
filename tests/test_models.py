from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from location_chain.core import (
    Classification,
    ErrorKind,
    LocationError,
    LocationSample,
    LocationTime,
    NoCachedSampleError,
    PermissionResult,
    TimeUnit,
    classify,
)
from location_chain.utils import haversine_distance, sample_distance, to_seconds


def test_location_time_units():
    assert LocationTime(1500, TimeUnit.MILLISECONDS).total_seconds() == pytest.approx(1.5)
    assert LocationTime.one_hour().total_seconds() == 3600
    assert LocationTime.one_day().total_seconds() == 86400


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        (2, 2.0),
        (0.25, 0.25),
        (timedelta(minutes=2), 120.0),
        (LocationTime(3, TimeUnit.MINUTES), 180.0),
    ],
)
def test_to_seconds(value, expected):
    assert to_seconds(value) == expected


def test_to_seconds_rejects_bad_values():
    with pytest.raises(ValueError):
        to_seconds(-1)
    with pytest.raises(TypeError):
        to_seconds(True)
    with pytest.raises(TypeError):
        to_seconds("10s")


def test_sample_from_dict_accepts_short_keys():
    sample = LocationSample.from_dict({"lat": "10.5", "lng": "-3", "time": 1700000000}, provider="network")

    assert (sample.provider, sample.latitude, sample.longitude) == ("network", 10.5, -3.0)
    assert sample.as_dict()["time"] == 1700000000.0
    assert sample.accuracy is None


def test_sample_from_dict_requires_coordinates():
    with pytest.raises(ValueError):
        LocationSample.from_dict({"latitude": 1.0})


@pytest.mark.parametrize("payload", [[1.0, 2.0], None, "30,-97"])
def test_sample_from_dict_requires_object(payload):
    with pytest.raises(ValueError):
        LocationSample.from_dict(payload)


def test_sample_age_uses_elapsed_realtime():
    sample = LocationSample(provider="gps", latitude=0, longitude=0, elapsed_realtime=100.0)

    assert sample.age(130.0) == 30.0


def test_distance_between_samples():
    austin = LocationSample(provider="gps", latitude=30.2672, longitude=-97.7431)
    dallas = LocationSample(provider="gps", latitude=32.7767, longitude=-96.7970)

    assert sample_distance(austin, dallas) == pytest.approx(292_000, rel=0.01)
    assert haversine_distance(1.0, 1.0, 1.0, 1.0) == 0


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (NoCachedSampleError("gps"), ErrorKind.NO_CACHED_SAMPLE),
        (asyncio.TimeoutError(), ErrorKind.TIMEOUT),
        (PermissionError("nope"), ErrorKind.PERMISSION_DENIED),
        (KeyError("x"), ErrorKind.FATAL),
        (LocationError("generic"), ErrorKind.FATAL),
    ],
)
def test_every_error_has_one_classification(error, kind):
    assert classify(error) == Classification(kind)


def test_ignorable_error_serializes_category():
    error = LocationError.ignorable(NoCachedSampleError("gps"))

    assert error.as_dict() == {
        "message": "The gps provider has no last location",
        "error": "LocationError",
        "classification": {"kind": "user_ignorable", "category": "no_cached_sample"},
        "details": {"suppressed": "NoCachedSampleError"},
    }


def test_permission_result_matches_same_set_only():
    result = PermissionResult(("B", "A"), (0, 0))

    assert result.matches(["A", "B"])
    assert not result.matches(["A"])
    assert not result.matches(["A", "C"])
