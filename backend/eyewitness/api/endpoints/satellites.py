from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional
from datetime import datetime

from eyewitness.api.deps import get_registry
from eyewitness.models.tracked_object import TrackedObject
from eyewitness.models.vector import RICComponents
from eyewitness.schemas.feeds import TrackedObjectRecord
from eyewitness.services.geometry import decompose_relative_state, relative_state
from eyewitness.services.registry import ObjectRegistry

router = APIRouter()


def _get_or_404(registry: ObjectRegistry, object_id: str) -> TrackedObject:
    obj = registry.get(object_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"Tracked object {object_id} not found")
    return obj


@router.get("/", response_model=List[TrackedObject])
def read_satellites(
    q: Optional[str] = None,
    registry: ObjectRegistry = Depends(get_registry),
):
    objects = registry.list()
    if q:
        # Case-insensitive search on name, or exact NORAD ID
        needle = q.strip().casefold()
        objects = [
            o for o in objects
            if needle in o.name.casefold() or (q.isdigit() and o.norad_id == int(q))
        ]
    return objects


@router.post("/", response_model=TrackedObject, status_code=201)
def add_satellite(record: TrackedObjectRecord, registry: ObjectRegistry = Depends(get_registry)):
    return registry.add(TrackedObject(**record.model_dump()))


@router.post("/refresh")
def refresh_states(
    at: Optional[datetime] = Query(None),
    registry: ObjectRegistry = Depends(get_registry),
):
    """
    Propagate every tracked object carrying a TLE with SGP4 and store its
    state vector and altitude.
    """
    updated = registry.refresh_states(at)
    return {"updated": updated}


@router.get("/{object_id}", response_model=TrackedObject)
def read_satellite(object_id: str, registry: ObjectRegistry = Depends(get_registry)):
    return _get_or_404(registry, object_id)


@router.delete("/{object_id}", status_code=204)
def remove_satellite(object_id: str, registry: ObjectRegistry = Depends(get_registry)):
    if not registry.remove(object_id):
        raise HTTPException(status_code=404, detail=f"Tracked object {object_id} not found")


@router.get("/{object_id}/ric/{other_id}", response_model=RICComponents)
def read_ric(object_id: str, other_id: str, registry: ObjectRegistry = Depends(get_registry)):
    """Position of `other_id` relative to `object_id` in the primary's RIC frame (km)."""
    primary = _get_or_404(registry, object_id)
    secondary = _get_or_404(registry, other_id)
    try:
        state = relative_state(primary, secondary)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return decompose_relative_state(state)
