"""
Alert matching: attribute feed events to the operator's tracked objects.

Conjunction events are matched pairwise (object x event). Space weather
affects every orbiting asset and is fanned out to all tracked objects.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from eyewitness.models.alert import ConjunctionAlert, SpaceWeatherAlert
from eyewitness.models.thresholds import Thresholds
from eyewitness.models.tracked_object import TrackedObject
from eyewitness.schemas.feeds import ConjunctionEventRecord, SpaceWeatherEventRecord
from eyewitness.services.risk import classify_conjunction, classify_space_weather, weather_severity

logger = logging.getLogger(__name__)

ALTITUDE_MATCH_TOLERANCE_KM = 50.0


def _normalize_label(label: str) -> str:
    return label.strip().casefold()


def identity_match(obj: TrackedObject, event: ConjunctionEventRecord) -> bool:
    """Exact, case-insensitive match of either event label against the object name."""
    name = _normalize_label(obj.name)
    return name in (_normalize_label(event.object_a), _normalize_label(event.object_b))


def proximity_match(obj: TrackedObject, event: ConjunctionEventRecord) -> bool:
    if obj.altitude_km is None or event.altitude_km is None:
        return False
    return abs(event.altitude_km - obj.altitude_km) <= ALTITUDE_MATCH_TOLERANCE_KM


def _label_slug(label: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", _normalize_label(label)).strip("-")


def conjunction_alert_id(object_id: str, tca: datetime, object_a: str, object_b: str) -> str:
    """
    Stable for the same (object, TCA), so re-polled events keep their id.

    The sorted pair of event labels is appended so that two different
    encounters sharing a TCA against one object get distinct ids.
    """
    stamp = tca.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%S.%fZ")
    pair = "-vs-".join(sorted((_label_slug(object_a), _label_slug(object_b))))
    return f"conj-{object_id}-{stamp}-{pair}"


def space_weather_alert_id(object_id: str, event: SpaceWeatherEventRecord, now: datetime) -> str:
    observed = event.time or event.cme_eta_start or now
    return f"sw-{object_id}-{observed.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"


def match_conjunctions(
    tracked_objects: Iterable[TrackedObject],
    events: Iterable[ConjunctionEventRecord],
    thresholds: Optional[Thresholds] = None,
    now: Optional[datetime] = None,
) -> List[ConjunctionAlert]:
    """
    Produce one classified alert for every (object, event) pair that matches
    by identity or by altitude band. An object may collect several alerts and
    an event may be attributed to several objects.
    """
    thresholds = thresholds or Thresholds()
    now = now or datetime.now(timezone.utc)
    events = list(events)
    alerts: List[ConjunctionAlert] = []

    for obj in tracked_objects:
        for event in events:
            if identity_match(obj, event):
                reason = "identity"
            elif proximity_match(obj, event):
                reason = "proximity"
            else:
                continue

            severity = classify_conjunction(event.miss_distance_km, event.pc, thresholds)
            alerts.append(
                ConjunctionAlert(
                    id=conjunction_alert_id(obj.id, event.tca, event.object_a, event.object_b),
                    tca=event.tca,
                    miss_distance_km=event.miss_distance_km,
                    relative_velocity_kms=event.relative_velocity_kms,
                    object_a=event.object_a,
                    object_b=event.object_b,
                    tracked_object_id=obj.id,
                    tracked_object_name=obj.name,
                    match_reason=reason,
                    pc=event.pc,
                    sigma_radial_km=event.sigma_radial_km,
                    sigma_tangential_km=event.sigma_tangential_km,
                    sigma_normal_km=event.sigma_normal_km,
                    source=event.source,
                    link=event.link,
                    severity=severity,
                    message=(
                        f"Close approach: {event.object_a} & {event.object_b} "
                        f"at {event.miss_distance_km:.1f} km"
                    ),
                    created_at=now,
                )
            )

    logger.debug(f"Matched {len(alerts)} conjunction alerts from {len(events)} events")
    return alerts


def match_space_weather(
    tracked_objects: Iterable[TrackedObject],
    event: SpaceWeatherEventRecord,
    thresholds: Optional[Thresholds] = None,
    now: Optional[datetime] = None,
) -> List[SpaceWeatherAlert]:
    """One alert per tracked object when the event is severe, none otherwise."""
    thresholds = thresholds or Thresholds()
    now = now or datetime.now(timezone.utc)

    assessment = classify_space_weather(
        event.kp, event.cme_eta_start, event.cme_eta_end, now, thresholds
    )
    if not assessment.weather_severe:
        return []

    severity = weather_severity(assessment)
    message = event.message or f"Space weather alert: {'; '.join(assessment.reasons)}"

    return [
        SpaceWeatherAlert(
            id=space_weather_alert_id(obj.id, event, now),
            type=event.type,
            kp=event.kp,
            cme_eta_start=event.cme_eta_start,
            cme_eta_end=event.cme_eta_end,
            message=message,
            tracked_object_id=obj.id,
            tracked_object_name=obj.name,
            reasons=list(assessment.reasons),
            source=event.source,
            link=event.link,
            severity=severity,
            created_at=now,
        )
        for obj in tracked_objects
    ]
