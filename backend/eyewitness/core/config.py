from pydantic_settings import BaseSettings
from typing import Optional

from eyewitness.models.thresholds import (
    ConjunctionThresholds,
    ManeuverPolicy,
    SpaceWeatherThresholds,
    Thresholds,
)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Eyewitness"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    # Where the polling worker posts fetched feed records
    API_BASE_URL: str = "http://127.0.0.1:8000"

    SWPC_BASE: str = "https://services.swpc.noaa.gov"
    DONKI_BASE: str = "https://api.nasa.gov/DONKI"
    NASA_API_KEY: Optional[str] = None
    SOCRATES_URL: Optional[str] = None

    CELESTRAK_BASE: str = "https://celestrak.org"
    CELESTRAK_GROUP: str = "stations"

    SPACETRACK_BASE: str = "https://www.space-track.org"
    SPACETRACK_USER: Optional[str] = None
    SPACETRACK_PASSWORD: Optional[str] = None
    # cdm_public omits relative speed and covariance; operators with access use "cdm"
    SPACETRACK_CDM_CLASS: str = "cdm"
    SPACETRACK_CDM_LIMIT: int = 100

    SWPC_KP_INTERVAL_MINUTES: int = 30
    DONKI_INTERVAL_MINUTES: int = 60
    SOCRATES_INTERVAL_MINUTES: int = 180
    CELESTRAK_INTERVAL_MINUTES: int = 60
    SPACETRACK_CDM_INTERVAL_MINUTES: int = 480
    SPACE_WEATHER_CACHE_SECONDS: int = 300
    CME_DEFAULT_DURATION_HOURS: float = 12.0

    TRACKED_OBJECTS_FILE: Optional[str] = None

    CONJUNCTION_CRITICAL_PC: float = 1e-4
    CONJUNCTION_WARNING_MISS_DISTANCE_KM: float = 5.0
    CONJUNCTION_CAUTION_MISS_DISTANCE_KM: float = 10.0
    KP_WARNING: float = 6.0
    CME_HOURS_TO_ETA_CRITICAL: float = 18.0

    MANEUVER_SCALE_FACTOR: float = 0.1
    MANEUVER_IN_PLANE_CAP_MPS: float = 10.0
    MANEUVER_OUT_OF_PLANE_CAP_MPS: float = 5.0
    MANEUVER_IN_PLANE_IMPROVEMENT_KM_PER_MPS: float = 100.0
    MANEUVER_OUT_OF_PLANE_IMPROVEMENT_KM_PER_MPS: float = 50.0

    @property
    def CELERY_BROKER_URL(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/0"

    @property
    def CELERY_RESULT_BACKEND(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/1"

    def default_thresholds(self) -> Thresholds:
        """Initial threshold snapshot handed to the decision engine."""
        return Thresholds(
            conjunction=ConjunctionThresholds(
                critical_pc=self.CONJUNCTION_CRITICAL_PC,
                warning_miss_distance_km=self.CONJUNCTION_WARNING_MISS_DISTANCE_KM,
                caution_miss_distance_km=self.CONJUNCTION_CAUTION_MISS_DISTANCE_KM,
            ),
            space_weather=SpaceWeatherThresholds(
                kp_warning=self.KP_WARNING,
                cme_hours_to_eta_critical=self.CME_HOURS_TO_ETA_CRITICAL,
            ),
            maneuver=ManeuverPolicy(
                scale_factor=self.MANEUVER_SCALE_FACTOR,
                in_plane_cap_mps=self.MANEUVER_IN_PLANE_CAP_MPS,
                out_of_plane_cap_mps=self.MANEUVER_OUT_OF_PLANE_CAP_MPS,
                in_plane_improvement_km_per_mps=self.MANEUVER_IN_PLANE_IMPROVEMENT_KM_PER_MPS,
                out_of_plane_improvement_km_per_mps=self.MANEUVER_OUT_OF_PLANE_IMPROVEMENT_KM_PER_MPS,
            ),
        )

    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
