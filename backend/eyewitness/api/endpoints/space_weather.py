from fastapi import APIRouter, HTTPException, Query
from typing import List

from eyewitness.schemas.feeds import KpSample, NotificationRecord, SpaceWeatherEventRecord
from eyewitness.services import space_weather
from eyewitness.services.space_weather import SpaceWeatherSnapshot

router = APIRouter()


def _require_donki() -> None:
    if not space_weather.donki_available():
        raise HTTPException(status_code=503, detail="DONKI service not available")


@router.get("/", response_model=SpaceWeatherSnapshot)
async def get_space_weather(days: int = Query(default=7, ge=1, le=30)):
    """
    Current space-weather picture from SWPC and DONKI.
    Cached for a few minutes.
    """
    return await space_weather.get_space_weather_snapshot(days=days)


@router.get("/kp", response_model=List[KpSample])
async def get_kp_history():
    snapshot = await space_weather.get_space_weather_snapshot()
    return snapshot.kp_history


@router.get("/cme", response_model=List[SpaceWeatherEventRecord])
async def get_cme_windows(days: int = Query(default=7, ge=1, le=30)):
    _require_donki()
    snapshot = await space_weather.get_space_weather_snapshot(days=days)
    return snapshot.cme


@router.get("/notifications", response_model=List[NotificationRecord])
async def get_notifications(days: int = Query(default=7, ge=1, le=30)):
    _require_donki()
    snapshot = await space_weather.get_space_weather_snapshot(days=days)
    return snapshot.notifications
