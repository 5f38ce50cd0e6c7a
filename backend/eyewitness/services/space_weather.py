"""
Read-side space-weather picture: the planetary Kp series from SWPC plus
DONKI CME arrival windows and notifications over a trailing window of days.

Snapshots are cached in memory per window length.
"""
import asyncio
import logging
import time
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from eyewitness.core.config import settings
from eyewitness.models.types import UtcDatetime
from eyewitness.schemas.feeds import KpSample, NotificationRecord, SpaceWeatherEventRecord
from eyewitness.services.feeds import (
    fetch_donki_cmes,
    fetch_donki_notifications,
    fetch_kp_samples,
)

logger = logging.getLogger(__name__)


class FeedAvailability(BaseModel):
    swpc: bool = True
    donki: bool = False


class SpaceWeatherSnapshot(BaseModel):
    kp_current: Optional[float] = None
    kp_history: List[KpSample] = Field(default_factory=list)
    cme: List[SpaceWeatherEventRecord] = Field(default_factory=list)
    notifications: List[NotificationRecord] = Field(default_factory=list)
    sources: FeedAvailability = Field(default_factory=FeedAvailability)
    last_updated: UtcDatetime


# days -> (monotonic fetch time, snapshot)
_cache: Dict[int, Tuple[float, SpaceWeatherSnapshot]] = {}


def clear_cache() -> None:
    _cache.clear()


def donki_available() -> bool:
    return bool(settings.NASA_API_KEY)


async def get_space_weather_snapshot(
    days: int = 7,
    today: Optional[date] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> SpaceWeatherSnapshot:
    """
    Fetch all three feeds in parallel. A failing feed contributes an empty
    list rather than failing the snapshot.
    """
    cached = _cache.get(days)
    if cached and time.monotonic() - cached[0] < settings.SPACE_WEATHER_CACHE_SECONDS:
        return cached[1]

    today = today or datetime.now(timezone.utc).date()
    start = today - timedelta(days=days)
    kp_samples, cmes, notifications = await asyncio.gather(
        fetch_kp_samples(client=client),
        fetch_donki_cmes(start, today, client=client),
        fetch_donki_notifications(start, today, client=client),
    )

    snapshot = SpaceWeatherSnapshot(
        kp_current=kp_samples[-1].kp if kp_samples else None,
        kp_history=kp_samples,
        cme=cmes,
        notifications=notifications,
        sources=FeedAvailability(swpc=True, donki=donki_available()),
        last_updated=datetime.now(timezone.utc),
    )
    logger.info(
        f"Space weather snapshot ({days}d): {len(kp_samples)} Kp samples, "
        f"{len(cmes)} CME windows, {len(notifications)} notifications"
    )
    _cache[days] = (time.monotonic(), snapshot)
    return snapshot
