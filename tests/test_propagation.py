import json
from datetime import datetime, timezone

import numpy as np
import pytest

from eyewitness.models.tracked_object import TrackedObject
from eyewitness.schemas.feeds import TleRecord
from eyewitness.services.propagation import (
    EARTH_RADIUS_KM,
    FLATTENING,
    PropagationError,
    earth_fixed,
    geodetic_altitude,
    sidereal_angle,
    state_vector_at,
)
from eyewitness.services.registry import ObjectRegistry, load_tracked_objects

ISS_LINE1 = "1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927"
ISS_LINE2 = "2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537"
# TLE epoch, day 264.51782528 of 2008
ISS_EPOCH = datetime(2008, 9, 20, 12, 25, 40, tzinfo=timezone.utc)


def test_sidereal_angle_is_wrapped():
    angle = sidereal_angle(2451545.0, 0.0)
    assert 0.0 <= angle < 2 * np.pi
    # J2000 noon: GMST is about 280.46 degrees
    assert np.degrees(angle) == pytest.approx(280.46, abs=0.01)


def test_earth_fixed_rotation_keeps_radius():
    r = np.array([7000.0, 0.0, 100.0])
    rotated = earth_fixed(r, np.pi / 2)
    assert rotated == pytest.approx([0.0, -7000.0, 100.0], abs=1e-9)


@pytest.mark.parametrize(
    "position, expected",
    [
        ((EARTH_RADIUS_KM + 400.0, 0.0, 0.0), 400.0),
        ((0.0, 0.0, EARTH_RADIUS_KM * (1.0 - FLATTENING) + 400.0), 400.0),
    ],
)
def test_geodetic_altitude_at_equator_and_pole(position, expected):
    assert geodetic_altitude(np.array(position)) == pytest.approx(expected, abs=1e-6)


def test_state_vector_at_epoch():
    state = state_vector_at(ISS_LINE1, ISS_LINE2, ISS_EPOCH)

    radius = np.linalg.norm(state.position.to_array())
    speed = np.linalg.norm(state.velocity.to_array())
    assert 6600.0 < radius < 6850.0
    assert 7.4 < speed < 7.9
    assert 300.0 < state.altitude_km < 450.0
    assert state.epoch == ISS_EPOCH


def test_bad_tle_raises_propagation_error():
    with pytest.raises(PropagationError):
        state_vector_at("1 garbage", "2 garbage", ISS_EPOCH)


def test_registry_refresh_fills_state_and_skips_failures():
    registry = ObjectRegistry([
        TrackedObject(id="sat-1", name="ISS", tle_line1=ISS_LINE1, tle_line2=ISS_LINE2),
        TrackedObject(id="sat-2", name="BROKEN", tle_line1="1 garbage", tle_line2="2 garbage"),
        TrackedObject(id="sat-3", name="NO-TLE", altitude_km=550.0),
    ])

    assert registry.refresh_states(ISS_EPOCH) == 1

    iss = registry.get("sat-1")
    assert iss.has_state
    assert 300.0 < iss.altitude_km < 450.0
    assert not registry.get("sat-2").has_state
    assert registry.get("sat-3").altitude_km == 550.0


def test_update_tles_matches_by_norad_id():
    registry = ObjectRegistry([
        TrackedObject(id="sat-1", name="ISS", norad_id=25544),
        TrackedObject(id="sat-2", name="HUBBLE", norad_id=20580),
    ])
    record = TleRecord(norad_id=25544, name="ISS (ZARYA)", line1=ISS_LINE1, line2=ISS_LINE2)

    assert registry.update_tles([record]) == 1
    assert registry.get("sat-1").tle_line1 == ISS_LINE1
    assert registry.get("sat-1").name == "ISS"
    assert not registry.get("sat-2").has_tle

    # same element set again is not an update
    assert registry.update_tles([record]) == 0
    assert registry.refresh_states(ISS_EPOCH) == 1


def test_load_tracked_objects_skips_invalid(tmp_path):
    path = tmp_path / "objects.json"
    path.write_text(json.dumps([
        {"id": "sat-1", "name": "ISS", "altitude_km": 410, "norad_id": 25544},
        {"id": "", "name": "nameless"},
    ]))

    objects = load_tracked_objects(str(path))

    assert [o.id for o in objects] == ["sat-1"]
    assert objects[0].norad_id == 25544


def test_load_tracked_objects_missing_file(tmp_path):
    assert load_tracked_objects(str(tmp_path / "missing.json")) == []
