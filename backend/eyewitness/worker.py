"""
Celery worker for background feed polling.
Tasks: SWPC Kp, DONKI CME, SOCRATES and Space-Track CDM conjunctions,
and CelesTrak TLE refresh.

Fetched records are posted to the API ingestion routes, so the API process
stays the only owner of the alert store and decision ledger.
"""
import asyncio
import logging
from datetime import date, timedelta
from typing import Any, Dict, List

import httpx
from celery import Celery
from pydantic import BaseModel

from eyewitness.core.config import settings
from eyewitness.services.feeds import (
    fetch_celestrak_tles,
    fetch_donki_cmes,
    fetch_kp_samples,
    fetch_socrates_events,
    latest_kp_event,
)
from eyewitness.services.space_track import fetch_cdm_events

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

celery_app = Celery(
    "eyewitness",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)


@celery_app.on_after_configure.connect
def setup_periodic_tasks(sender, **kwargs):
    sender.add_periodic_task(
        settings.SWPC_KP_INTERVAL_MINUTES * 60.0,
        poll_space_weather_task.s(),
        name="Poll SWPC Kp",
    )
    sender.add_periodic_task(
        settings.DONKI_INTERVAL_MINUTES * 60.0,
        poll_cme_task.s(),
        name="Poll DONKI CME",
    )
    sender.add_periodic_task(
        settings.SOCRATES_INTERVAL_MINUTES * 60.0,
        poll_conjunctions_task.s(),
        name="Poll SOCRATES conjunctions",
    )
    sender.add_periodic_task(
        settings.SPACETRACK_CDM_INTERVAL_MINUTES * 60.0,
        poll_cdm_task.s(),
        name="Poll Space-Track CDMs",
    )
    sender.add_periodic_task(
        settings.CELESTRAK_INTERVAL_MINUTES * 60.0,
        poll_tles_task.s(),
        name="Refresh CelesTrak TLEs",
    )


def post_records(path: str, records: List[BaseModel]) -> Dict[str, Any]:
    """POST validated records to an ingestion route of the API."""
    payload = [r.model_dump(mode="json") for r in records]
    url = f"{settings.API_BASE_URL}{settings.API_V1_STR}/ingest/{path}"
    with httpx.Client(timeout=30.0) as client:
        resp = client.post(url, json=payload)
        resp.raise_for_status()
        return resp.json()


@celery_app.task(name="poll_space_weather")
def poll_space_weather_task():
    """Latest planetary Kp reading."""
    try:
        event = latest_kp_event(asyncio.run(fetch_kp_samples()))
        if event is None:
            logger.info("No Kp samples available")
            return {"accepted": 0}
        result = post_records("space-weather", [event])
        logger.info(f"Kp {event.kp:g} at {event.time} posted: {result['alerts']} alerts")
        return result
    except Exception as e:
        logger.error(f"Kp polling failed: {e}")
        raise


@celery_app.task(name="poll_cme")
def poll_cme_task():
    """CME arrival windows from the last day of DONKI analyses."""
    today = date.today()
    try:
        events = asyncio.run(fetch_donki_cmes(today - timedelta(days=1), today))
        if not events:
            logger.info("No CME arrival estimates")
            return {"accepted": 0}
        result = post_records("space-weather", events)
        logger.info(f"Posted {len(events)} CME windows: {result['alerts']} alerts")
        return result
    except Exception as e:
        logger.error(f"CME polling failed: {e}")
        raise


@celery_app.task(name="poll_conjunctions")
def poll_conjunctions_task():
    try:
        events = asyncio.run(fetch_socrates_events())
        if not events:
            logger.info("No conjunction records fetched")
            return {"accepted": 0}
        result = post_records("conjunctions", events)
        logger.info(
            f"Posted {len(events)} conjunctions: {result['alerts']} alerts, "
            f"{result['decisions']} decisions"
        )
        return result
    except Exception as e:
        logger.error(f"Conjunction polling failed: {e}")
        raise


@celery_app.task(name="poll_cdms")
def poll_cdm_task():
    """Space-Track CDMs carry Pc and covariance, so they can drive maneuvers."""
    try:
        events = asyncio.run(fetch_cdm_events())
        if not events:
            logger.info("No CDMs fetched")
            return {"accepted": 0}
        result = post_records("conjunctions", events)
        logger.info(
            f"Posted {len(events)} CDMs: {result['alerts']} alerts, "
            f"{result['decisions']} decisions"
        )
        return result
    except Exception as e:
        logger.error(f"CDM polling failed: {e}")
        raise


@celery_app.task(name="refresh_tles")
def poll_tles_task():
    try:
        records = asyncio.run(fetch_celestrak_tles())
        if not records:
            logger.info("No TLEs fetched from CelesTrak")
            return {"accepted": 0}
        result = post_records("tles", records)
        logger.info(f"Posted {len(records)} TLEs: {result['updated']} tracked objects updated")
        return result
    except Exception as e:
        logger.error(f"TLE refresh failed: {e}")
        raise
