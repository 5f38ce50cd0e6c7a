"""
Decision Ledger.

Owns decision records and their pending -> executed transition. Execution
is at most once per decision: whichever action is executed first closes the
decision, and any later execute call is rejected.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence
from uuid import uuid4

from eyewitness.models.decision import AnyAlert, Decision, DecisionStatus, ExecutionRecord, SuggestedAction

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for rejected ledger operations."""


class NotFoundError(LedgerError):
    pass


class DecisionNotFound(NotFoundError):
    def __init__(self, decision_id: str):
        super().__init__("Decision not found")
        self.decision_id = decision_id


class ActionNotFound(NotFoundError):
    def __init__(self, decision_id: str, action_id: str):
        super().__init__("Action not found")
        self.decision_id = decision_id
        self.action_id = action_id


class AlreadyExecutedError(LedgerError):
    def __init__(self, decision_id: str):
        super().__init__("Decision already executed")
        self.decision_id = decision_id


class EmptyDecisionError(LedgerError, ValueError):
    def __init__(self):
        super().__init__("A decision needs at least one suggested action")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DecisionLedger:
    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock
        self._decisions: Dict[str, Decision] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._order: Dict[str, int] = {}
        # Guards the maps; per-decision locks serialise transitions
        self._map_lock = threading.Lock()

    def record_decision(
        self,
        alert: AnyAlert,
        actions: Sequence[SuggestedAction],
    ) -> Decision:
        if not actions:
            raise EmptyDecisionError()

        decision = Decision(
            id=f"decision-{uuid4().hex}",
            alert_id=alert.id,
            alert_type=alert.alert_type,
            alert=alert,
            suggested_actions=list(actions),
            status=DecisionStatus.PENDING,
            created_at=self._clock(),
        )
        with self._map_lock:
            self._decisions[decision.id] = decision
            self._locks[decision.id] = threading.Lock()
            self._order[decision.id] = len(self._order)

        logger.info(
            f"Recorded decision {decision.id} for alert {alert.id} "
            f"with {len(decision.suggested_actions)} action(s)"
        )
        return decision.model_copy(deep=True)

    def execute(self, decision_id: str, action_id: str) -> ExecutionRecord:
        with self._map_lock:
            lock = self._locks.get(decision_id)
        if lock is None:
            raise DecisionNotFound(decision_id)

        with lock:
            with self._map_lock:
                decision = self._decisions[decision_id]

            action = decision.find_action(action_id)
            if action is None:
                raise ActionNotFound(decision_id, action_id)
            if decision.status == DecisionStatus.EXECUTED:
                raise AlreadyExecutedError(decision_id)

            executed_at = self._clock()
            execution_log = f"Executed {action.type.value} action: {action.rationale}"

            # Readers see either the pending record or the executed one
            executed = decision.model_copy(
                update={
                    "status": DecisionStatus.EXECUTED,
                    "executed_at": executed_at,
                    "executed_action_id": action.id,
                    "execution_log": execution_log,
                }
            )
            with self._map_lock:
                self._decisions[decision_id] = executed

        logger.info(f"Decision {decision_id} executed with action {action_id}")
        return ExecutionRecord(
            decision_id=decision_id,
            action_id=action_id,
            status=DecisionStatus.EXECUTED,
            executed_at=executed_at,
            execution_log=execution_log,
        )

    def get(self, decision_id: str) -> Optional[Decision]:
        with self._map_lock:
            decision = self._decisions.get(decision_id)
        return decision.model_copy(deep=True) if decision is not None else None

    def list(
        self,
        status: Optional[DecisionStatus] = None,
        limit: Optional[int] = None,
    ) -> List[Decision]:
        """Newest first, optionally filtered by status and capped at limit."""
        with self._map_lock:
            decisions = list(self._decisions.values())
            order = dict(self._order)

        if status is not None:
            decisions = [d for d in decisions if d.status == status]
        decisions.sort(key=lambda d: (d.created_at, order[d.id]), reverse=True)
        if limit is not None:
            decisions = decisions[: max(limit, 0)]
        return [d.model_copy(deep=True) for d in decisions]

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._decisions)

    def clear(self) -> None:
        with self._map_lock:
            self._decisions.clear()
            self._locks.clear()
            self._order.clear()
