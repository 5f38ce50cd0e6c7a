"""
Process-wide engine state handed to the endpoints as FastAPI dependencies.

The API process is the single owner of the decision ledger; the polling
worker posts feed records to the ingestion routes instead of touching it.
"""
import logging
from typing import Iterable, Optional

from eyewitness.core.config import settings
from eyewitness.models.thresholds import Thresholds
from eyewitness.models.tracked_object import TrackedObject
from eyewitness.services.alert_store import AlertStore
from eyewitness.services.decision_engine import DecisionEngine
from eyewitness.services.ledger import DecisionLedger
from eyewitness.services.pipeline import DecisionPipeline
from eyewitness.services.registry import ObjectRegistry, load_tracked_objects

logger = logging.getLogger(__name__)


class EngineState:
    def __init__(
        self,
        thresholds: Optional[Thresholds] = None,
        tracked_objects: Optional[Iterable[TrackedObject]] = None,
    ):
        self.engine = DecisionEngine(thresholds or settings.default_thresholds())
        self.ledger = DecisionLedger()
        self.alerts = AlertStore()
        self.registry = ObjectRegistry(tracked_objects)
        self.pipeline = DecisionPipeline(self.engine, self.ledger, self.alerts)


_state: Optional[EngineState] = None


def _initial_objects() -> list:
    if not settings.TRACKED_OBJECTS_FILE:
        return []
    objects = load_tracked_objects(settings.TRACKED_OBJECTS_FILE)
    logger.info(f"Loaded {len(objects)} tracked objects from {settings.TRACKED_OBJECTS_FILE}")
    return objects


def get_state() -> EngineState:
    global _state
    if _state is None:
        _state = EngineState(tracked_objects=_initial_objects())
    return _state


def reset_state(
    thresholds: Optional[Thresholds] = None,
    tracked_objects: Optional[Iterable[TrackedObject]] = None,
) -> EngineState:
    """Replace the process state; used at startup and by tests."""
    global _state
    _state = EngineState(thresholds, tracked_objects)
    return _state


def get_engine() -> DecisionEngine:
    return get_state().engine


def get_ledger() -> DecisionLedger:
    return get_state().ledger


def get_alert_store() -> AlertStore:
    return get_state().alerts


def get_registry() -> ObjectRegistry:
    return get_state().registry


def get_pipeline() -> DecisionPipeline:
    return get_state().pipeline
