"""
Orchestration from validated feed records to recorded decisions:
matcher -> classifier -> decision engine -> ledger.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from eyewitness.models.decision import Decision
from eyewitness.models.tracked_object import TrackedObject
from eyewitness.schemas.feeds import ConjunctionEventRecord, SpaceWeatherEventRecord
from eyewitness.services.alert_store import Alert, AlertStore
from eyewitness.services.decision_engine import DecisionEngine
from eyewitness.services.ledger import DecisionLedger
from eyewitness.services.matcher import match_conjunctions, match_space_weather

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    alerts: List[Alert] = field(default_factory=list)
    decisions: List[Decision] = field(default_factory=list)
    duplicates: int = 0


class DecisionPipeline:
    def __init__(self, engine: DecisionEngine, ledger: DecisionLedger, alerts: AlertStore):
        self.engine = engine
        self.ledger = ledger
        self.alerts = alerts

    def decide(self, alert: Alert, now: Optional[datetime] = None) -> Optional[Decision]:
        """Analyze one alert and record a decision. None when nothing is actionable."""
        if alert.alert_type == "conjunction":
            actions = self.engine.analyze_conjunction(alert, now=now)
        else:
            actions = self.engine.analyze_space_weather(alert, now=now)

        if not actions:
            logger.debug(f"No actionable suggestions for alert {alert.id}")
            return None
        return self.ledger.record_decision(alert, actions)

    def process_conjunctions(
        self,
        tracked_objects: Iterable[TrackedObject],
        events: Iterable[ConjunctionEventRecord],
        now: Optional[datetime] = None,
    ) -> PipelineResult:
        now = now or datetime.now(timezone.utc)
        matched = match_conjunctions(
            tracked_objects, events, self.engine.get_thresholds(), now=now
        )
        return self._record(matched, now)

    def process_space_weather(
        self,
        tracked_objects: Iterable[TrackedObject],
        event: SpaceWeatherEventRecord,
        now: Optional[datetime] = None,
    ) -> PipelineResult:
        now = now or datetime.now(timezone.utc)
        matched = match_space_weather(
            tracked_objects, event, self.engine.get_thresholds(), now=now
        )
        return self._record(matched, now)

    def _record(self, matched: List[Alert], now: datetime) -> PipelineResult:
        result = PipelineResult()
        for alert in matched:
            # Re-polled events map to the same alert id
            if not self.alerts.add(alert):
                result.duplicates += 1
                continue
            result.alerts.append(alert)
            decision = self.decide(alert, now=now)
            if decision is not None:
                result.decisions.append(decision)

        logger.info(
            f"Pipeline: {len(result.alerts)} new alerts, {len(result.decisions)} decisions, "
            f"{result.duplicates} already known"
        )
        return result
