from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from typing import List, Optional

from eyewitness.api.deps import get_alert_store
from eyewitness.models.alert import AlertAcknowledgement, AlertType, Severity
from eyewitness.services.alert_store import Alert, AlertStore

router = APIRouter()


class AcknowledgeRequest(BaseModel):
    operator: Optional[str] = None


@router.get("/", response_model=List[Alert])
def list_alerts(
    alert_type: Optional[AlertType] = Query(None, alias="type"),
    severity: Optional[Severity] = Query(None),
    acknowledged: Optional[bool] = Query(None),
    limit: int = Query(default=100, ge=1, le=1000),
    store: AlertStore = Depends(get_alert_store),
):
    """
    Alerts raised this session, newest first.
    """
    return store.list(
        alert_type=alert_type, severity=severity, acknowledged=acknowledged, limit=limit
    )


@router.get("/{alert_id}", response_model=Alert)
def get_alert(alert_id: str, store: AlertStore = Depends(get_alert_store)):
    alert = store.get(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.post("/{alert_id}/acknowledge", response_model=AlertAcknowledgement)
def acknowledge_alert(
    alert_id: str,
    request: Optional[AcknowledgeRequest] = None,
    store: AlertStore = Depends(get_alert_store),
):
    ack = store.acknowledge(alert_id, by=request.operator if request else None)
    if ack is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return ack


@router.get("/{alert_id}/acknowledgement", response_model=AlertAcknowledgement)
def get_acknowledgement(alert_id: str, store: AlertStore = Depends(get_alert_store)):
    if store.get(alert_id) is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    ack = store.acknowledgement(alert_id)
    if ack is None:
        raise HTTPException(status_code=404, detail="Alert not acknowledged")
    return ack
