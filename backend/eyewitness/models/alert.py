import enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from eyewitness.models.types import UtcDatetime

_SEVERITY_RANK = {"Low": 1, "Medium": 2, "High": 3, "Critical": 4}


class Severity(str, enum.Enum):
    """Alert severity, ordered Low < Medium < High < Critical."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    # str's own comparisons would order these alphabetically
    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


class AlertType(str, enum.Enum):
    CONJUNCTION = "conjunction"
    SPACE_WEATHER = "space_weather"


class ConjunctionAlert(BaseModel):
    """Predicted close approach attributed to one tracked object."""

    model_config = ConfigDict(frozen=True)

    alert_type: Literal["conjunction"] = "conjunction"
    id: str
    tca: UtcDatetime
    miss_distance_km: float = Field(gt=0.0)
    relative_velocity_kms: float
    object_a: str
    object_b: str
    tracked_object_id: Optional[str] = None
    tracked_object_name: Optional[str] = None
    match_reason: Optional[Literal["identity", "proximity"]] = None
    pc: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    sigma_radial_km: Optional[float] = Field(default=None, ge=0.0)
    sigma_tangential_km: Optional[float] = Field(default=None, ge=0.0)
    sigma_normal_km: Optional[float] = Field(default=None, ge=0.0)
    source: str = "unknown"
    link: str = ""
    severity: Severity
    message: str = ""
    created_at: Optional[UtcDatetime] = None

    @property
    def has_uncertainty(self) -> bool:
        return (
            self.sigma_radial_km is not None
            and self.sigma_tangential_km is not None
            and self.sigma_normal_km is not None
        )


class SpaceWeatherAlert(BaseModel):
    """Geomagnetic / CME event, issued per tracked object."""

    model_config = ConfigDict(frozen=True)

    alert_type: Literal["space_weather"] = "space_weather"
    id: str
    type: str = "geomagnetic"
    kp: Optional[float] = Field(default=None, ge=0.0, le=9.0)
    cme_eta_start: Optional[UtcDatetime] = None
    cme_eta_end: Optional[UtcDatetime] = None
    message: Optional[str] = None
    tracked_object_id: Optional[str] = None
    tracked_object_name: Optional[str] = None
    reasons: List[str] = Field(default_factory=list)
    source: str = "unknown"
    link: str = ""
    severity: Severity
    created_at: Optional[UtcDatetime] = None


class AlertAcknowledgement(BaseModel):
    """Operator sign-off on an alert, kept beside the alert rather than on it."""

    model_config = ConfigDict(frozen=True)

    alert_id: str
    acknowledged: bool = True
    acknowledged_at: UtcDatetime
    acknowledged_by: Optional[str] = None
