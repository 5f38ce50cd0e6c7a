"""
Risk classification for conjunctions and space weather.

Every cutover value comes from the active Thresholds snapshot.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from eyewitness.models.alert import Severity
from eyewitness.models.thresholds import Thresholds


@dataclass(frozen=True)
class WeatherAssessment:
    weather_severe: bool
    reasons: List[str] = field(default_factory=list)


def classify_conjunction(
    miss_distance_km: float,
    probability_of_collision: Optional[float] = None,
    thresholds: Optional[Thresholds] = None,
) -> Severity:
    """Band by miss distance, escalate to Critical when Pc exceeds the critical value."""
    limits = (thresholds or Thresholds()).conjunction

    if (
        probability_of_collision is not None
        and probability_of_collision > limits.critical_pc
    ):
        return Severity.CRITICAL
    if miss_distance_km < limits.warning_miss_distance_km:
        return Severity.HIGH
    if miss_distance_km < limits.caution_miss_distance_km:
        return Severity.MEDIUM
    return Severity.LOW


def hours_until(when: datetime, now: datetime) -> float:
    return (when - now).total_seconds() / 3600.0


def cme_hours_to_eta(
    cme_eta_start: Optional[datetime],
    cme_eta_end: Optional[datetime],
    now: datetime,
) -> Optional[float]:
    """
    Hours from now to CME arrival, or None when there is no open window.

    A window needs both ends; one whose end has already passed is over.
    Negative values mean the CME has already arrived.
    """
    if cme_eta_start is None or cme_eta_end is None:
        return None
    if cme_eta_end <= now:
        return None
    return hours_until(cme_eta_start, now)


def kp_exceeds_warning(kp: Optional[float], thresholds: Thresholds) -> bool:
    return kp is not None and kp >= thresholds.space_weather.kp_warning


def classify_space_weather(
    kp: Optional[float],
    cme_eta_start: Optional[datetime],
    cme_eta_end: Optional[datetime],
    now: datetime,
    thresholds: Optional[Thresholds] = None,
) -> WeatherAssessment:
    limits = thresholds or Thresholds()
    reasons: List[str] = []

    if kp_exceeds_warning(kp, limits):
        reasons.append(
            f"Kp index {kp:g} at or above warning level {limits.space_weather.kp_warning:g}"
        )

    hours_to_eta = cme_hours_to_eta(cme_eta_start, cme_eta_end, now)
    if (
        hours_to_eta is not None
        and hours_to_eta < limits.space_weather.cme_hours_to_eta_critical
    ):
        if hours_to_eta < 0:
            reasons.append("CME arrival window already in progress")
        else:
            reasons.append(
                f"CME arrival in {hours_to_eta:.1f} h, inside the "
                f"{limits.space_weather.cme_hours_to_eta_critical:g} h critical window"
            )

    return WeatherAssessment(weather_severe=bool(reasons), reasons=reasons)


def weather_severity(assessment: WeatherAssessment) -> Severity:
    """High for one triggered condition, Critical when Kp and CME both fire."""
    if len(assessment.reasons) > 1:
        return Severity.CRITICAL
    if assessment.weather_severe:
        return Severity.HIGH
    return Severity.LOW
