"""
Relative-motion geometry between two orbiting objects.

Plain numpy vector math: separation, relative speed and the
Radial / In-track / Cross-track (RIC) decomposition used for
maneuver planning.
"""
import numpy as np

from eyewitness.models.tracked_object import TrackedObject
from eyewitness.models.vector import RelativeState, RICComponents, VectorLike, as_array

# Below this the orthogonalised in-track axis is treated as undefined
_AXIS_EPSILON = 1e-12


def distance(a: VectorLike, b: VectorLike) -> float:
    """Euclidean norm of a - b."""
    return float(np.linalg.norm(as_array(a) - as_array(b)))


def relative_speed(va: VectorLike, vb: VectorLike) -> float:
    """Euclidean norm of vb - va."""
    return float(np.linalg.norm(as_array(vb) - as_array(va)))


def decompose_ric(
    primary_pos: VectorLike,
    primary_vel: VectorLike,
    secondary_pos: VectorLike,
    secondary_vel: VectorLike,
) -> RICComponents:
    """
    Express the secondary's position relative to the primary in a frame
    anchored on the primary.

    Axes:
    - radial: unit vector along the relative position
    - in-track: primary velocity with its radial part removed, normalised
    - cross-track: radial x in-track (right-handed)

    Zero relative position or zero primary velocity has no defined
    orientation and returns all-zero components.
    """
    rel_pos = as_array(secondary_pos) - as_array(primary_pos)
    vel = as_array(primary_vel)

    pos_mag = np.linalg.norm(rel_pos)
    vel_mag = np.linalg.norm(vel)
    if pos_mag == 0.0 or vel_mag == 0.0:
        return RICComponents()

    r_hat = rel_pos / pos_mag

    # Gram-Schmidt keeps the basis orthonormal so the components
    # reconstruct |rel_pos|.
    in_track = vel - np.dot(vel, r_hat) * r_hat
    in_track_mag = np.linalg.norm(in_track)
    if in_track_mag < _AXIS_EPSILON * vel_mag:
        # Velocity along the line of sight: only the radial axis exists
        return RICComponents(radial=float(np.dot(rel_pos, r_hat)))

    i_hat = in_track / in_track_mag
    c_hat = np.cross(r_hat, i_hat)

    return RICComponents(
        radial=float(np.dot(rel_pos, r_hat)),
        in_track=float(np.dot(rel_pos, i_hat)),
        cross_track=float(np.dot(rel_pos, c_hat)),
    )


def decompose_relative_state(state: RelativeState) -> RICComponents:
    return decompose_ric(
        state.primary_position,
        state.primary_velocity,
        state.secondary_position,
        state.secondary_velocity,
    )


def relative_state(primary: TrackedObject, secondary: TrackedObject) -> RelativeState:
    """Pair two propagated objects' state vectors. Both need position and velocity."""
    for obj in (primary, secondary):
        if not obj.has_state:
            raise ValueError(f"Tracked object {obj.id} has no state vector")
    return RelativeState(
        primary_position=primary.position,
        primary_velocity=primary.velocity,
        secondary_position=secondary.position,
        secondary_velocity=secondary.velocity,
    )
