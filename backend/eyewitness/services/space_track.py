"""
Space-Track.org conjunction data message (CDM) client.

Requires SPACETRACK_USER and SPACETRACK_PASSWORD. CDMs are the only polled
conjunction source that carries a collision probability and position
covariance, which is what sizes maneuver candidates downstream.
"""
import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from eyewitness.core.config import settings
from eyewitness.schemas.feeds import ConjunctionEventRecord, validate_records

logger = logging.getLogger(__name__)

LOGIN_PATH = "/ajaxauth/login"
QUERY_PATH = "/basicspacedata/query"

# cdm_public and the full cdm class name the same quantities differently
_CDM_ALIASES: Dict[str, List[str]] = {
    "tca": ["TCA"],
    "miss_distance_m": ["MIN_RNG", "MISS_DISTANCE"],
    "relative_speed_ms": ["RELATIVE_SPEED"],
    "object_a": ["SAT_1_NAME", "SAT1_OBJECT_NAME"],
    "object_b": ["SAT_2_NAME", "SAT2_OBJECT_NAME"],
    "pc": ["PC", "COLLISION_PROBABILITY"],
}

# RTN covariance diagonals in m**2
_SIGMA_KEYS = {
    "sigma_radial_km": "CR_R",
    "sigma_tangential_km": "CT_T",
    "sigma_normal_km": "CN_N",
}


class SpaceTrackClient:
    """
    Authenticated Space-Track session on top of an httpx.AsyncClient.

    Usage:
        async with SpaceTrackClient() as st:
            rows = await st.fetch_cdms(limit=100)
    """

    def __init__(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.username = username if username is not None else settings.SPACETRACK_USER
        self.password = password if password is not None else settings.SPACETRACK_PASSWORD
        self.base_url = (base_url or settings.SPACETRACK_BASE).rstrip("/")
        self.authenticated = False
        self._client = client
        self._owns_client = client is None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    async def __aenter__(self) -> "SpaceTrackClient":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=60.0)
        return self

    async def __aexit__(self, *exc_info) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
        self.authenticated = False

    async def login(self) -> bool:
        if not self.has_credentials:
            logger.warning("SPACETRACK_USER/SPACETRACK_PASSWORD not set, skipping Space-Track login")
            return False

        try:
            resp = await self._client.post(
                f"{self.base_url}{LOGIN_PATH}",
                data={"identity": self.username, "password": self.password},
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Space-Track.org login failed: {e}")
            return False

        # Bad credentials still answer 200 with a failure body
        if "failed" in resp.text.lower():
            logger.error("Space-Track.org rejected the credentials")
            return False

        self.authenticated = True
        logger.info("Space-Track.org authentication successful")
        return True

    async def fetch_cdms(self, limit: int = 100, cdm_class: Optional[str] = None) -> List[Dict[str, Any]]:
        """Most recent CDMs, newest TCA first."""
        if not self.authenticated and not await self.login():
            return []

        cdm_class = cdm_class or settings.SPACETRACK_CDM_CLASS
        query = "/".join([
            f"class/{cdm_class}",
            "format/json",
            f"limit/{limit}",
            "orderby/TCA desc",
            "TCA/>now",
        ])
        try:
            resp = await self._client.get(f"{self.base_url}{QUERY_PATH}/{query}")
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Space-Track CDM fetch failed: {e}")
            return []

        if not isinstance(data, list):
            logger.warning("Invalid CDM data format received")
            return []
        logger.info(f"Fetched {len(data)} CDMs from Space-Track.org")
        return data


def _first(raw: Dict[str, Any], keys: List[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def combined_sigma_km(raw: Dict[str, Any], axis: str) -> Optional[float]:
    """
    One-sigma uncertainty along an RTN axis for the pair, from the sum of
    both objects' covariance diagonals (m**2). None when neither is given.
    """
    variances = [_to_float(raw.get(f"{sat}_{axis}")) for sat in ("SAT1", "SAT2")]
    variances = [v for v in variances if v is not None and v >= 0.0]
    if not variances:
        return None
    return math.sqrt(sum(variances)) / 1000.0


def parse_cdm_rows(data: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Map CDM fields onto raw conjunction event dicts (metres to kilometres)."""
    rows: List[Dict[str, Any]] = []
    for raw in data:
        if not isinstance(raw, dict):
            continue
        fields = {name: _first(raw, keys) for name, keys in _CDM_ALIASES.items()}

        miss_m = _to_float(fields.pop("miss_distance_m"))
        speed_ms = _to_float(fields.pop("relative_speed_ms"))
        row: Dict[str, Any] = {k: v for k, v in fields.items() if v is not None}
        if miss_m is not None:
            row["miss_distance_km"] = miss_m / 1000.0
        if speed_ms is not None:
            row["relative_velocity_kms"] = speed_ms / 1000.0
        for name, axis in _SIGMA_KEYS.items():
            sigma = combined_sigma_km(raw, axis)
            if sigma is not None:
                row[name] = sigma

        row["source"] = "Space-Track CDM"
        rows.append(row)
    return rows


async def fetch_cdm_events(client: Optional[httpx.AsyncClient] = None) -> List[ConjunctionEventRecord]:
    async with SpaceTrackClient(client=client) as st:
        if not st.has_credentials:
            logger.info("Space-Track credentials not set, skipping CDM feed")
            return []
        data = await st.fetch_cdms(limit=settings.SPACETRACK_CDM_LIMIT)

    events, _ = validate_records(parse_cdm_rows(data), ConjunctionEventRecord)
    return events
