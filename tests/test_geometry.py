import math

import numpy as np
import pytest

from eyewitness.models.tracked_object import TrackedObject
from eyewitness.models.vector import Vector3
from eyewitness.services.geometry import (
    decompose_relative_state,
    decompose_ric,
    distance,
    relative_speed,
    relative_state,
)


def test_distance_and_relative_speed():
    assert distance([0, 0, 0], [3, 4, 0]) == pytest.approx(5.0)
    assert distance(Vector3(x=1, y=2, z=3), Vector3(x=1, y=2, z=3)) == 0.0
    assert relative_speed([7.5, 0, 0], [7.5, 0.3, 0.4]) == pytest.approx(0.5)


@pytest.mark.parametrize(
    "primary_pos, primary_vel, secondary_pos",
    [
        ([6778.0, 0.0, 0.0], [0.0, 7.67, 0.0], [6779.0, 2.0, -0.5]),
        ([7000.0, 100.0, -50.0], [0.1, 7.5, 1.2], [6990.0, 130.0, -20.0]),
        ([0.0, 0.0, 6800.0], [7.6, 0.0, 0.0], [3.0, -4.0, 6812.0]),
    ],
)
def test_ric_components_reconstruct_relative_distance(primary_pos, primary_vel, secondary_pos):
    ric = decompose_ric(primary_pos, primary_vel, secondary_pos, [0.0, 0.0, 0.0])

    norm = math.sqrt(ric.radial ** 2 + ric.in_track ** 2 + ric.cross_track ** 2)
    expected = float(np.linalg.norm(np.array(secondary_pos) - np.array(primary_pos)))
    assert norm == pytest.approx(expected, rel=1e-9)


def test_ric_zero_relative_position_is_all_zero():
    ric = decompose_ric([7000, 0, 0], [0, 7.5, 0], [7000, 0, 0], [0, 7.4, 0])
    assert (ric.radial, ric.in_track, ric.cross_track) == (0.0, 0.0, 0.0)


def test_ric_zero_primary_velocity_is_all_zero():
    ric = decompose_ric([7000, 0, 0], [0, 0, 0], [7001, 1, 1], [0, 7.5, 0])
    assert (ric.radial, ric.in_track, ric.cross_track) == (0.0, 0.0, 0.0)


def test_ric_velocity_along_line_of_sight_is_radial_only():
    ric = decompose_ric([7000, 0, 0], [7.5, 0, 0], [7010, 0, 0], [0, 0, 0])
    assert ric.radial == pytest.approx(10.0)
    assert ric.in_track == 0.0
    assert ric.cross_track == 0.0


def test_relative_state_requires_state_vectors():
    propagated = TrackedObject(
        id="a", name="A",
        position=Vector3(x=7000, y=0, z=0), velocity=Vector3(x=0, y=7.5, z=0),
    )
    bare = TrackedObject(id="b", name="B", altitude_km=500.0)

    with pytest.raises(ValueError):
        relative_state(propagated, bare)


def test_relative_state_decomposition():
    a = TrackedObject(
        id="a", name="A",
        position=Vector3(x=7000, y=0, z=0), velocity=Vector3(x=0, y=7.5, z=0),
    )
    b = TrackedObject(
        id="b", name="B",
        position=Vector3(x=7003, y=4, z=0), velocity=Vector3(x=0, y=7.4, z=0.1),
    )
    ric = decompose_relative_state(relative_state(a, b))
    assert ric.radial == pytest.approx(5.0)
    assert ric.cross_track == pytest.approx(0.0, abs=1e-9)
