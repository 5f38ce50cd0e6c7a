from pydantic import BaseModel, ConfigDict, Field, model_validator


class ConjunctionThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    critical_pc: float = Field(default=1e-4, gt=0.0, le=1.0)
    # Below this miss distance a conjunction is High
    warning_miss_distance_km: float = Field(default=5.0, gt=0.0)
    # Below this (and at or above warning) it is Medium
    caution_miss_distance_km: float = Field(default=10.0, gt=0.0)

    @model_validator(mode="after")
    def _check_band_order(self) -> "ConjunctionThresholds":
        if self.caution_miss_distance_km < self.warning_miss_distance_km:
            raise ValueError(
                "caution_miss_distance_km must be >= warning_miss_distance_km"
            )
        return self


class SpaceWeatherThresholds(BaseModel):
    model_config = ConfigDict(frozen=True)

    kp_warning: float = Field(default=6.0, ge=0.0, le=9.0)
    cme_hours_to_eta_critical: float = Field(default=18.0, gt=0.0)


class ManeuverPolicy(BaseModel):
    """
    Linear delta-V heuristic used to size small avoidance burns.

    delta-V (m/s) = min(sigma_km * scale_factor, cap); the expected miss
    distance gain (km) is delta-V times the matching improvement factor.
    These are placeholder policy values, not a burn solver.
    """

    model_config = ConfigDict(frozen=True)

    scale_factor: float = Field(default=0.1, ge=0.0)
    in_plane_cap_mps: float = Field(default=10.0, ge=0.0)
    out_of_plane_cap_mps: float = Field(default=5.0, ge=0.0)
    in_plane_improvement_km_per_mps: float = Field(default=100.0, ge=0.0)
    out_of_plane_improvement_km_per_mps: float = Field(default=50.0, ge=0.0)


class Thresholds(BaseModel):
    """Immutable threshold snapshot shared by the classifier and the engine."""

    model_config = ConfigDict(frozen=True)

    conjunction: ConjunctionThresholds = Field(default_factory=ConjunctionThresholds)
    space_weather: SpaceWeatherThresholds = Field(default_factory=SpaceWeatherThresholds)
    maneuver: ManeuverPolicy = Field(default_factory=ManeuverPolicy)
