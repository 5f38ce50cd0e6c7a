from sgp4.api import Satrec, WGS72, jday
import numpy as np
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Tuple
import math
import logging

from eyewitness.models.vector import Vector3

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * math.pi

# WGS84 ellipsoid
EARTH_RADIUS_KM = 6378.137
FLATTENING = 1.0 / 298.257223563
ECCENTRICITY_SQ = FLATTENING * (2.0 - FLATTENING)

# IAU 1982 sidereal time in seconds, as a cubic in Julian centuries of UT1
# since J2000 (highest power first, as np.polyval expects)
_GMST_SECONDS_POLY = (-6.2e-6, 0.093104, 876600.0 * 3600.0 + 8640184.812866, 67310.54841)


class PropagationError(Exception):
    """SGP4 could not produce a state for the requested epoch."""


@dataclass(frozen=True)
class StateVector:
    epoch: datetime
    position: Vector3  # km, TEME
    velocity: Vector3  # km/s, TEME
    altitude_km: float


def _jday(time: datetime) -> Tuple[float, float]:
    if time.tzinfo is not None:
        time = time.astimezone(timezone.utc)
    return jday(
        time.year, time.month, time.day,
        time.hour, time.minute,
        time.second + time.microsecond / 1e6,
    )


def sidereal_angle(jd: float, fr: float) -> float:
    """Earth rotation angle for a split Julian date, in [0, 2pi)."""
    centuries = (jd - 2451545.0 + fr) / 36525.0
    seconds = float(np.polyval(_GMST_SECONDS_POLY, centuries))
    return (seconds / 86400.0 * TWO_PI) % TWO_PI


def earth_fixed(r_teme: np.ndarray, angle: float) -> np.ndarray:
    """Spin a TEME position into the Earth-fixed frame. Polar motion is ignored."""
    c, s = math.cos(angle), math.sin(angle)
    spin = np.array([
        [c, s, 0.0],
        [-s, c, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return spin @ np.asarray(r_teme, dtype=float)


def geodetic_altitude(r_ecef: np.ndarray) -> float:
    """
    Height above the WGS84 ellipsoid (km). Latitude comes from Bowring's
    one-step formula; the height expression stays finite at the poles.
    """
    x, y, z = (float(c) for c in r_ecef)
    a = EARTH_RADIUS_KM
    b = a * (1.0 - FLATTENING)
    ep2 = ECCENTRICITY_SQ / (1.0 - ECCENTRICITY_SQ)

    p = math.hypot(x, y)
    beta = math.atan2(a * z, b * p)
    lat = math.atan2(
        z + ep2 * b * math.sin(beta) ** 3,
        p - ECCENTRICITY_SQ * a * math.cos(beta) ** 3,
    )
    sin_lat = math.sin(lat)
    return p * math.cos(lat) + z * sin_lat - a * math.sqrt(1.0 - ECCENTRICITY_SQ * sin_lat ** 2)


def state_vector_at(line1: str, line2: str, time: datetime) -> StateVector:
    """
    Propagate a TLE with SGP4 to the given epoch.

    Raises PropagationError when the TLE cannot be parsed or SGP4 reports
    an error code (decayed orbit, bad elements).
    """
    if not (line1.startswith("1 ") and line2.startswith("2 ")) or min(len(line1), len(line2)) < 69:
        raise PropagationError("Malformed TLE lines")

    try:
        satellite = Satrec.twoline2rv(line1, line2, WGS72)
    except (ValueError, IndexError) as e:
        raise PropagationError(f"TLE parse error: {e}") from e

    jd, fr = _jday(time)
    e, r, v = satellite.sgp4(jd, fr)
    if e != 0:
        raise PropagationError(f"SGP4 error {e}")

    alt = geodetic_altitude(earth_fixed(np.array(r), sidereal_angle(jd, fr)))

    return StateVector(
        epoch=time,
        position=Vector3.from_array(r),
        velocity=Vector3.from_array(v),
        altitude_km=alt,
    )
