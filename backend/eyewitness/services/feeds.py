"""
External feed adapters.

- NOAA SWPC planetary K-index (JSON array with a header row)
- NASA DONKI CME analyses (WSA-Enlil estimated shock arrival)
- NASA DONKI notifications
- SOCRATES-style conjunction CSV (header row, column aliases)
- CelesTrak GP element sets in three-line TLE format

Fetch failures are logged and produce empty results; parsing never raises
for individual bad rows, which are rejected at validation.
"""
import csv
import io
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from eyewitness.core.config import settings
from eyewitness.schemas.feeds import (
    ConjunctionEventRecord,
    KpSample,
    NotificationRecord,
    SpaceWeatherEventRecord,
    TleRecord,
    validate_records,
)

logger = logging.getLogger(__name__)

KP_PRODUCT_PATH = "/products/noaa-planetary-k-index.json"
USER_AGENT = "Eyewitness-SSA/0.1"

# SOCRATES column names vary between exports
_CSV_ALIASES: Dict[str, List[str]] = {
    "tca": ["TCA", "TCA_TIME"],
    "miss_distance_km": ["MISS_DISTANCE", "MISS_DIST_KM", "MIN_RNG"],
    "relative_velocity_kms": ["REL_VEL", "REL_VELOCITY"],
    "object_a": ["SAT1", "OBJECT1", "SAT_1_NAME"],
    "object_b": ["SAT2", "OBJECT2", "SAT_2_NAME"],
    "altitude_km": ["ALTITUDE", "ALT_KM"],
    "pc": ["PC", "MAX_PROB", "COLLISION_PROBABILITY"],
}


async def fetch_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Any:
    try:
        if client is not None:
            resp = await client.get(url, params=params, timeout=30.0)
        else:
            async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}) as own_client:
                resp = await own_client.get(url, params=params, timeout=30.0)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Failed to fetch JSON from {url}: {e}")
        return None


async def fetch_text(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    try:
        if client is not None:
            resp = await client.get(url, params=params, timeout=30.0)
        else:
            async with httpx.AsyncClient(headers={"User-Agent": USER_AGENT}) as own_client:
                resp = await own_client.get(url, params=params, timeout=30.0)
        resp.raise_for_status()
        return resp.text
    except httpx.HTTPError as e:
        logger.error(f"Failed to fetch {url}: {e}")
        return None


# ── SWPC Kp ──────────────────────────────────────────────


def parse_kp_rows(data: Any) -> List[KpSample]:
    """
    Accept both SWPC layouts: a list of lists whose first row is the header
    [time_tag, Kp, a_running, station_count], or a list of objects.
    """
    if not isinstance(data, list) or not data:
        logger.warning("Invalid Kp data format received")
        return []

    rows: List[Dict[str, Any]] = []
    if isinstance(data[0], list):
        for row in data[1:]:
            if not isinstance(row, list) or len(row) < 2:
                continue
            rows.append({
                "time": row[0],
                "kp": row[1],
                "a_running": row[2] if len(row) > 2 else None,
                "station_count": row[3] if len(row) > 3 else None,
            })
    else:
        for row in data:
            if not isinstance(row, dict):
                continue
            rows.append({
                "time": row.get("time_tag"),
                "kp": row.get("Kp", row.get("kp_index")),
                "a_running": row.get("a_running"),
                "station_count": row.get("station_count"),
            })

    samples, _ = validate_records(rows, KpSample)
    return sorted(samples, key=lambda s: s.time)


def latest_kp_event(samples: List[KpSample]) -> Optional[SpaceWeatherEventRecord]:
    if not samples:
        return None
    latest = samples[-1]
    return SpaceWeatherEventRecord(
        type="geomagnetic",
        time=latest.time,
        kp=latest.kp,
        source="SWPC",
        link=f"{settings.SWPC_BASE}{KP_PRODUCT_PATH}",
    )


async def fetch_kp_samples(client: Optional[httpx.AsyncClient] = None) -> List[KpSample]:
    data = await fetch_json(f"{settings.SWPC_BASE}{KP_PRODUCT_PATH}", client=client)
    if data is None:
        return []
    return parse_kp_rows(data)


# ── DONKI CME ────────────────────────────────────────────


def parse_donki_cmes(
    data: Any,
    default_duration_hours: float = 12.0,
) -> List[SpaceWeatherEventRecord]:
    """
    Turn DONKI CME records into arrival windows. The window opens at the
    WSA-Enlil estimated shock arrival and lasts the estimated duration.
    CMEs with no Earth-arrival estimate are skipped.
    """
    if not isinstance(data, list):
        logger.warning("Invalid CME data format received")
        return []

    windows: List[SpaceWeatherEventRecord] = []
    for cme in data:
        if not isinstance(cme, dict):
            continue
        enlil = _earth_arrival_run(cme.get("cmeAnalyses") or [])
        if enlil is None:
            continue

        activity = cme.get("activityID", "unknown")
        try:
            event = SpaceWeatherEventRecord.model_validate({
                "type": "cme",
                "time": cme.get("startTime"),
                "cme_eta_start": enlil["estimatedShockArrivalTime"],
                "message": f"CME {activity} estimated Earth arrival",
                "source": "DONKI",
                "link": cme.get("link") or "",
            })
        except ValidationError as e:
            logger.warning(f"Skipping CME {activity}: {e.error_count()} validation errors")
            continue

        try:
            duration = float(enlil.get("estimatedDuration") or default_duration_hours)
        except (TypeError, ValueError):
            duration = default_duration_hours
        windows.append(
            event.model_copy(
                update={"cme_eta_end": event.cme_eta_start + timedelta(hours=duration)}
            )
        )
    return windows


def _earth_arrival_run(analyses: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # Prefer the analysis DONKI flags as most accurate
    ordered = sorted(analyses, key=lambda a: not a.get("isMostAccurate", False))
    for analysis in ordered:
        for run in analysis.get("enlilList") or []:
            if run.get("estimatedShockArrivalTime"):
                return run
    return None


async def fetch_donki_cmes(
    start_date: date,
    end_date: date,
    client: Optional[httpx.AsyncClient] = None,
) -> List[SpaceWeatherEventRecord]:
    if not settings.NASA_API_KEY:
        logger.warning("NASA API key not provided, skipping DONKI CME data")
        return []
    data = await fetch_json(
        f"{settings.DONKI_BASE}/CME",
        params={
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "api_key": settings.NASA_API_KEY,
        },
        client=client,
    )
    if data is None:
        return []
    return parse_donki_cmes(data, settings.CME_DEFAULT_DURATION_HOURS)


def parse_donki_notifications(data: Any) -> List[NotificationRecord]:
    if not isinstance(data, list):
        logger.warning("Invalid notification data format received")
        return []
    rows = [row for row in data if isinstance(row, dict)]
    notifications, _ = validate_records(rows, NotificationRecord)
    return sorted(notifications, key=lambda n: n.issue_time, reverse=True)


async def fetch_donki_notifications(
    start_date: date,
    end_date: date,
    client: Optional[httpx.AsyncClient] = None,
) -> List[NotificationRecord]:
    if not settings.NASA_API_KEY:
        logger.warning("NASA API key not provided, skipping DONKI notifications")
        return []
    data = await fetch_json(
        f"{settings.DONKI_BASE}/notifications",
        params={
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "type": "all",
            "api_key": settings.NASA_API_KEY,
        },
        client=client,
    )
    if data is None:
        return []
    return parse_donki_notifications(data)


# ── SOCRATES conjunctions ────────────────────────────────


def parse_socrates_csv(text: str) -> List[Dict[str, Any]]:
    """Map a header-row CSV onto raw conjunction event dicts."""
    reader = csv.reader(io.StringIO(text.strip()))
    try:
        header = [h.strip().strip('"').upper() for h in next(reader)]
    except StopIteration:
        logger.warning("Invalid CSV format - no header row")
        return []

    rows: List[Dict[str, Any]] = []
    for line_no, values in enumerate(reader, start=2):
        if not values or not any(v.strip() for v in values):
            continue
        if len(values) != len(header):
            logger.warning(
                f"Row {line_no} has {len(values)} columns, expected {len(header)}, skipping"
            )
            continue
        raw = dict(zip(header, (v.strip() for v in values)))
        row: Dict[str, Any] = {"source": "SOCRATES"}
        for field_name, aliases in _CSV_ALIASES.items():
            for alias in aliases:
                if raw.get(alias):
                    row[field_name] = raw[alias]
                    break
        rows.append(row)
    return rows


async def fetch_socrates_events(
    client: Optional[httpx.AsyncClient] = None,
) -> List[ConjunctionEventRecord]:
    if not settings.SOCRATES_URL:
        logger.info("SOCRATES_URL not set, skipping conjunction feed")
        return []
    text = await fetch_text(settings.SOCRATES_URL, client=client)
    if text is None:
        return []
    events, _ = validate_records(parse_socrates_csv(text), ConjunctionEventRecord)
    return events



# ── CelesTrak GP (TLE) ───────────────────────────────────


def parse_tle_text(text: str) -> List[TleRecord]:
    """
    Parse name / line 1 / line 2 triplets. Triplets whose lines do not carry
    the '1 ' and '2 ' markers are skipped.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    rows: List[Dict[str, Any]] = []

    for i in range(0, len(lines) - 2, 3):
        name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]
        if not (line1.startswith("1 ") and line2.startswith("2 ")):
            logger.warning(f"Skipping malformed TLE block starting at line {i + 1}")
            continue
        rows.append({"norad_id": line1[2:7].strip(), "name": name, "line1": line1, "line2": line2})

    records, _ = validate_records(rows, TleRecord)
    return records


async def fetch_celestrak_tles(
    group: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[TleRecord]:
    group = group or settings.CELESTRAK_GROUP
    text = await fetch_text(
        f"{settings.CELESTRAK_BASE}/NORAD/elements/gp.php",
        params={"GROUP": group, "FORMAT": "tle"},
        client=client,
    )
    if text is None:
        return []
    records = parse_tle_text(text)
    logger.info(f"Fetched {len(records)} TLEs from CelesTrak group '{group}'")
    return records
