# Re-export the domain models so callers can import them from one place
from eyewitness.models.alert import AlertAcknowledgement as AlertAcknowledgement, AlertType as AlertType, ConjunctionAlert as ConjunctionAlert, Severity as Severity, SpaceWeatherAlert as SpaceWeatherAlert
from eyewitness.models.decision import ActionType as ActionType, Decision as Decision, DecisionStatus as DecisionStatus, ExecutionRecord as ExecutionRecord, SuggestedAction as SuggestedAction
from eyewitness.models.thresholds import ConjunctionThresholds as ConjunctionThresholds, ManeuverPolicy as ManeuverPolicy, SpaceWeatherThresholds as SpaceWeatherThresholds, Thresholds as Thresholds
from eyewitness.models.tracked_object import TrackedObject as TrackedObject
from eyewitness.models.vector import RICComponents as RICComponents, RelativeState as RelativeState, Vector3 as Vector3
