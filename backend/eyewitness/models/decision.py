import enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from eyewitness.models.alert import ConjunctionAlert, SpaceWeatherAlert
from eyewitness.models.types import UtcDatetime


class ActionType(str, enum.Enum):
    MANEUVER = "maneuver"
    SAFE_MODE = "safe_mode"
    MONITOR = "monitor"


class DecisionStatus(str, enum.Enum):
    PENDING = "pending"
    EXECUTED = "executed"


class SuggestedAction(BaseModel):
    """One recommendation produced by the decision engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: ActionType
    delta_v_mps: Optional[float] = Field(default=None, ge=0.0)
    direction: Optional[str] = None
    rationale: str
    expected_risk_delta: Optional[float] = None
    window_start: Optional[UtcDatetime] = None
    window_end: Optional[UtcDatetime] = None

    @model_validator(mode="after")
    def _check_shape(self) -> "SuggestedAction":
        if (
            self.window_start is not None
            and self.window_end is not None
            and self.window_start >= self.window_end
        ):
            raise ValueError("window_start must be before window_end")
        if self.type != ActionType.MANEUVER and (
            self.delta_v_mps is not None or self.expected_risk_delta is not None
        ):
            raise ValueError(f"{self.type.value} actions carry no delta-V fields")
        if self.type == ActionType.MONITOR and (
            self.window_start is not None or self.window_end is not None
        ):
            raise ValueError("monitor actions carry no execution window")
        return self


AnyAlert = Union[ConjunctionAlert, SpaceWeatherAlert]


class Decision(BaseModel):
    """An alert together with its suggested actions and execution state."""

    id: str
    alert_id: str
    alert_type: str
    alert: AnyAlert = Field(discriminator="alert_type")
    suggested_actions: List[SuggestedAction]
    status: DecisionStatus = DecisionStatus.PENDING
    created_at: UtcDatetime
    executed_at: Optional[UtcDatetime] = None
    executed_action_id: Optional[str] = None
    execution_log: Optional[str] = None

    def find_action(self, action_id: str) -> Optional[SuggestedAction]:
        for action in self.suggested_actions:
            if action.id == action_id:
                return action
        return None


class ExecutionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    decision_id: str
    action_id: str
    status: DecisionStatus
    executed_at: UtcDatetime
    execution_log: str
