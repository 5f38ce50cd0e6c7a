import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from eyewitness.models.alert import (
    AlertAcknowledgement,
    AlertType,
    ConjunctionAlert,
    Severity,
    SpaceWeatherAlert,
)

logger = logging.getLogger(__name__)

Alert = Union[ConjunctionAlert, SpaceWeatherAlert]


class AlertStore:
    """
    Alerts seen this session, keyed by their deterministic id.

    Alerts are immutable; operator acknowledgements live in a separate map.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._alerts: Dict[str, Alert] = {}
        self._acks: Dict[str, AlertAcknowledgement] = {}

    def add(self, alert: Alert) -> bool:
        """Store the alert. Returns False if an alert with that id already exists."""
        with self._lock:
            if alert.id in self._alerts:
                return False
            self._alerts[alert.id] = alert
            return True

    def get(self, alert_id: str) -> Optional[Alert]:
        with self._lock:
            return self._alerts.get(alert_id)

    def acknowledge(
        self,
        alert_id: str,
        by: Optional[str] = None,
        when: Optional[datetime] = None,
    ) -> Optional[AlertAcknowledgement]:
        """
        Mark an alert as seen by an operator. The first acknowledgement wins;
        repeating it returns the original record. None for an unknown alert.
        """
        with self._lock:
            if alert_id not in self._alerts:
                return None
            existing = self._acks.get(alert_id)
            if existing is not None:
                return existing
            ack = AlertAcknowledgement(
                alert_id=alert_id,
                acknowledged_at=when or datetime.now(timezone.utc),
                acknowledged_by=by,
            )
            self._acks[alert_id] = ack

        logger.info(f"Alert {alert_id} acknowledged{f' by {by}' if by else ''}")
        return ack

    def acknowledgement(self, alert_id: str) -> Optional[AlertAcknowledgement]:
        with self._lock:
            return self._acks.get(alert_id)

    def list(
        self,
        alert_type: Optional[AlertType] = None,
        severity: Optional[Severity] = None,
        acknowledged: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> List[Alert]:
        with self._lock:
            alerts = list(self._alerts.values())
            acked = set(self._acks)

        if alert_type is not None:
            alerts = [a for a in alerts if a.alert_type == alert_type.value]
        if severity is not None:
            alerts = [a for a in alerts if a.severity == severity]
        if acknowledged is not None:
            alerts = [a for a in alerts if (a.id in acked) == acknowledged]
        alerts.sort(key=lambda a: a.created_at.timestamp() if a.created_at else 0.0, reverse=True)
        if limit is not None:
            alerts = alerts[: max(limit, 0)]
        return alerts

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()
            self._acks.clear()
