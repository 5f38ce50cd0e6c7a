from datetime import datetime, timedelta, timezone

import pytest

from eyewitness.models.alert import ConjunctionAlert, Severity, SpaceWeatherAlert
from eyewitness.models.thresholds import Thresholds
from eyewitness.models.tracked_object import TrackedObject
from eyewitness.services.decision_engine import DecisionEngine
from eyewitness.services.ledger import DecisionLedger

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds()


@pytest.fixture
def engine(thresholds: Thresholds) -> DecisionEngine:
    return DecisionEngine(thresholds, clock=lambda: NOW)


@pytest.fixture
def ledger() -> DecisionLedger:
    return DecisionLedger(clock=lambda: NOW)


@pytest.fixture
def iss() -> TrackedObject:
    return TrackedObject(id="sat-1", name="ISS", altitude_km=410.0)


def make_conjunction_alert(**overrides) -> ConjunctionAlert:
    fields = dict(
        id="conj-sat-1-test",
        tca=NOW + timedelta(hours=24),
        miss_distance_km=3.2,
        relative_velocity_kms=7.5,
        object_a="ISS",
        object_b="DEBRIS-7",
        tracked_object_id="sat-1",
        tracked_object_name="ISS",
        match_reason="identity",
        source="test",
        severity=Severity.HIGH,
        created_at=NOW,
    )
    fields.update(overrides)
    return ConjunctionAlert(**fields)


def make_weather_alert(**overrides) -> SpaceWeatherAlert:
    fields = dict(
        id="sw-sat-1-test",
        type="geomagnetic",
        tracked_object_id="sat-1",
        tracked_object_name="ISS",
        source="test",
        severity=Severity.HIGH,
        created_at=NOW,
    )
    fields.update(overrides)
    return SpaceWeatherAlert(**fields)
