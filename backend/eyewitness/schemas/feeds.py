"""
Feed record contracts validated at the ingestion boundary.

Raw feed payloads (dicts parsed from JSON or CSV) are checked here. Records
that fail are reported back as RejectedRecord and never reach the engine.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from eyewitness.models.types import UtcDatetime

logger = logging.getLogger(__name__)


class ConjunctionEventRecord(BaseModel):
    """One predicted close approach from SOCRATES / CDM style feeds."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    tca: UtcDatetime
    miss_distance_km: float = Field(gt=0.0)
    relative_velocity_kms: float
    object_a: str = Field(min_length=1)
    object_b: str = Field(min_length=1)
    altitude_km: Optional[float] = None
    pc: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    sigma_radial_km: Optional[float] = Field(default=None, ge=0.0)
    sigma_tangential_km: Optional[float] = Field(default=None, ge=0.0)
    sigma_normal_km: Optional[float] = Field(default=None, ge=0.0)
    source: str = "SOCRATES"
    link: str = ""


class KpSample(BaseModel):
    """One row of the SWPC planetary K-index product."""

    time: UtcDatetime
    kp: float = Field(ge=0.0, le=9.0)
    a_running: Optional[float] = None
    station_count: Optional[int] = None


class SpaceWeatherEventRecord(BaseModel):
    """A geomagnetic / CME observation to broadcast to all tracked objects."""

    type: str = "geomagnetic"
    time: Optional[UtcDatetime] = None
    kp: Optional[float] = Field(default=None, ge=0.0, le=9.0)
    cme_eta_start: Optional[UtcDatetime] = None
    cme_eta_end: Optional[UtcDatetime] = None
    message: Optional[str] = None
    source: str = "SWPC"
    link: str = ""

    @model_validator(mode="after")
    def _check_window(self) -> "SpaceWeatherEventRecord":
        if (
            self.cme_eta_start is not None
            and self.cme_eta_end is not None
            and self.cme_eta_end < self.cme_eta_start
        ):
            raise ValueError("cme_eta_end is before cme_eta_start")
        return self


class TrackedObjectRecord(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    altitude_km: Optional[float] = None
    norad_id: Optional[int] = None
    tle_line1: Optional[str] = None
    tle_line2: Optional[str] = None


class TleRecord(BaseModel):
    """A CelesTrak / Space-Track two-line element set with its catalog number."""

    model_config = ConfigDict(str_strip_whitespace=True)

    norad_id: int = Field(gt=0)
    name: str = ""
    line1: str = Field(min_length=69)
    line2: str = Field(min_length=69)

    @model_validator(mode="after")
    def _check_lines(self) -> "TleRecord":
        if not (self.line1.startswith("1 ") and self.line2.startswith("2 ")):
            raise ValueError("TLE lines must start with '1 ' and '2 '")
        return self


class NotificationRecord(BaseModel):
    """A DONKI space-weather notification message."""

    message_id: str = Field(validation_alias=AliasChoices("messageID", "message_id"))
    message_type: str = Field(validation_alias=AliasChoices("messageType", "message_type"))
    issue_time: UtcDatetime = Field(validation_alias=AliasChoices("messageIssueTime", "issue_time"))
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("messageURL", "url"))
    body: Optional[str] = Field(default=None, validation_alias=AliasChoices("messageBody", "body"))


class RejectedRecord(BaseModel):
    index: int
    errors: List[str]


RecordT = TypeVar("RecordT", bound=BaseModel)


def validate_records(
    rows: Iterable[Dict[str, Any]],
    schema: Type[RecordT],
) -> Tuple[List[RecordT], List[RejectedRecord]]:
    """Split raw rows into validated records and rejections."""
    accepted: List[RecordT] = []
    rejected: List[RejectedRecord] = []

    for index, row in enumerate(rows):
        try:
            accepted.append(schema.model_validate(row))
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc']) or schema.__name__}: {err['msg']}"
                for err in e.errors()
            ]
            rejected.append(RejectedRecord(index=index, errors=errors))

    if rejected:
        logger.warning(
            f"Rejected {len(rejected)} of {len(accepted) + len(rejected)} "
            f"{schema.__name__} records"
        )
    return accepted, rejected
