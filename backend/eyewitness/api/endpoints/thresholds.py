from fastapi import APIRouter, Depends

from eyewitness.api.deps import get_engine
from eyewitness.models.thresholds import Thresholds
from eyewitness.services.decision_engine import DecisionEngine

router = APIRouter()


@router.get("/", response_model=Thresholds)
def get_thresholds(engine: DecisionEngine = Depends(get_engine)):
    return engine.get_thresholds()


@router.put("/", response_model=Thresholds)
def update_thresholds(new_thresholds: Thresholds, engine: DecisionEngine = Depends(get_engine)):
    """
    Replace the active threshold set. Applies to alerts classified from now
    on; existing alerts and decisions are left as issued.
    """
    engine.update_thresholds(new_thresholds)
    return engine.get_thresholds()
