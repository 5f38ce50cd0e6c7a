from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from eyewitness.models.vector import Vector3


class TrackedObject(BaseModel):
    """An operator asset the alert matcher checks feeds against."""

    id: str
    name: str
    altitude_km: Optional[float] = None
    norad_id: Optional[int] = None
    tle_line1: Optional[str] = None
    tle_line2: Optional[str] = None
    position: Optional[Vector3] = None
    velocity: Optional[Vector3] = None
    state_epoch: Optional[datetime] = None

    @property
    def has_tle(self) -> bool:
        return bool(self.tle_line1 and self.tle_line2)

    @property
    def has_state(self) -> bool:
        return self.position is not None and self.velocity is not None
