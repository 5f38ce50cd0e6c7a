from typing import Sequence, Union

import numpy as np
from pydantic import BaseModel, ConfigDict


class Vector3(BaseModel):
    """Cartesian triple. km for positions, km/s for velocities."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @classmethod
    def from_array(cls, values: Sequence[float]) -> "Vector3":
        x, y, z = (float(v) for v in values)
        return cls(x=x, y=y, z=z)


VectorLike = Union[Vector3, Sequence[float], np.ndarray]


def as_array(value: VectorLike) -> np.ndarray:
    if isinstance(value, Vector3):
        return value.to_array()
    return np.asarray(value, dtype=float).reshape(3)


class RelativeState(BaseModel):
    """Primary and secondary state vectors at a common epoch."""

    model_config = ConfigDict(frozen=True)

    primary_position: Vector3
    primary_velocity: Vector3
    secondary_position: Vector3
    secondary_velocity: Vector3


class RICComponents(BaseModel):
    """Relative position (km) expressed in the primary's RIC frame."""

    model_config = ConfigDict(frozen=True)

    radial: float = 0.0
    in_track: float = 0.0
    cross_track: float = 0.0
