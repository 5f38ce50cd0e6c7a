from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from typing import List, Optional
import logging

from eyewitness.api.deps import get_ledger, get_pipeline
from eyewitness.models.decision import AnyAlert, Decision, DecisionStatus, ExecutionRecord, SuggestedAction
from eyewitness.services.broadcast import manager
from eyewitness.services.ledger import AlreadyExecutedError, DecisionLedger, NotFoundError
from eyewitness.services.pipeline import DecisionPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


class SuggestRequest(BaseModel):
    alert: AnyAlert = Field(discriminator="alert_type")


class SuggestResponse(BaseModel):
    suggested_actions: List[SuggestedAction]
    decision: Optional[Decision] = None


class ExecuteRequest(BaseModel):
    decision_id: str
    action_id: str


@router.post("/suggest", response_model=SuggestResponse)
async def suggest_actions(
    request: SuggestRequest,
    pipeline: DecisionPipeline = Depends(get_pipeline),
):
    """
    Analyze an alert and record a pending decision.
    Alerts with nothing actionable (e.g. a TCA beyond the lookahead horizon)
    return no actions and no decision.
    """
    decision = pipeline.decide(request.alert)
    if decision is None:
        return SuggestResponse(suggested_actions=[])

    await manager.broadcast("decision", decision)
    return SuggestResponse(suggested_actions=decision.suggested_actions, decision=decision)


@router.post("/execute", response_model=ExecutionRecord)
async def execute_decision(
    request: ExecuteRequest,
    ledger: DecisionLedger = Depends(get_ledger),
):
    """Execute one action of a pending decision. A decision executes at most once."""
    try:
        record = ledger.execute(request.decision_id, request.action_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except AlreadyExecutedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    await manager.broadcast("execution", record)
    return record


@router.get("/", response_model=List[Decision])
def list_decisions(
    status: Optional[DecisionStatus] = Query(None),
    limit: int = Query(default=100, ge=1, le=1000),
    ledger: DecisionLedger = Depends(get_ledger),
):
    return ledger.list(status=status, limit=limit)


@router.get("/{decision_id}", response_model=Decision)
def get_decision(decision_id: str, ledger: DecisionLedger = Depends(get_ledger)):
    decision = ledger.get(decision_id)
    if decision is None:
        raise HTTPException(status_code=404, detail="Decision not found")
    return decision
