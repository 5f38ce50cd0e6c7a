from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, List
import logging

from eyewitness.api.deps import get_pipeline, get_registry
from eyewitness.schemas.feeds import (
    ConjunctionEventRecord,
    RejectedRecord,
    SpaceWeatherEventRecord,
    TleRecord,
    validate_records,
)
from eyewitness.services.broadcast import manager
from eyewitness.services.pipeline import DecisionPipeline, PipelineResult
from eyewitness.services.registry import ObjectRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


class IngestResponse(BaseModel):
    accepted: int
    rejected: List[RejectedRecord]
    alerts: int
    decisions: int
    duplicates: int


async def _publish(result: PipelineResult) -> None:
    for alert in result.alerts:
        await manager.broadcast("alert", alert)
    for decision in result.decisions:
        await manager.broadcast("decision", decision)


@router.post("/conjunctions", response_model=IngestResponse)
async def ingest_conjunctions(
    rows: List[Dict[str, Any]],
    pipeline: DecisionPipeline = Depends(get_pipeline),
    registry: ObjectRegistry = Depends(get_registry),
):
    """
    Validate raw conjunction records, match them against tracked objects and
    record decisions for the resulting alerts. Invalid rows are reported
    back and never reach the engine.
    """
    events, rejected = validate_records(rows, ConjunctionEventRecord)
    result = pipeline.process_conjunctions(registry.list(), events)
    await _publish(result)

    return IngestResponse(
        accepted=len(events),
        rejected=rejected,
        alerts=len(result.alerts),
        decisions=len(result.decisions),
        duplicates=result.duplicates,
    )


@router.post("/space-weather", response_model=IngestResponse)
async def ingest_space_weather(
    rows: List[Dict[str, Any]],
    pipeline: DecisionPipeline = Depends(get_pipeline),
    registry: ObjectRegistry = Depends(get_registry),
):
    """Each valid record is assessed on its own and fans out to every tracked object."""
    events, rejected = validate_records(rows, SpaceWeatherEventRecord)
    tracked = registry.list()

    combined = PipelineResult()
    for event in events:
        result = pipeline.process_space_weather(tracked, event)
        combined.alerts.extend(result.alerts)
        combined.decisions.extend(result.decisions)
        combined.duplicates += result.duplicates
    await _publish(combined)

    return IngestResponse(
        accepted=len(events),
        rejected=rejected,
        alerts=len(combined.alerts),
        decisions=len(combined.decisions),
        duplicates=combined.duplicates,
    )


class TleIngestResponse(BaseModel):
    accepted: int
    rejected: List[RejectedRecord]
    updated: int
    refreshed: int


@router.post("/tles", response_model=TleIngestResponse)
def ingest_tles(
    rows: List[Dict[str, Any]],
    registry: ObjectRegistry = Depends(get_registry),
):
    """
    Replace element sets of tracked objects by NORAD id, then re-propagate
    the registry so altitudes and state vectors follow the new TLEs.
    """
    records, rejected = validate_records(rows, TleRecord)
    updated = registry.update_tles(records)
    refreshed = registry.refresh_states() if updated else 0

    return TleIngestResponse(
        accepted=len(records),
        rejected=rejected,
        updated=updated,
        refreshed=refreshed,
    )
