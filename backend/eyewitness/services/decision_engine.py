"""
Decision Engine.

Turns classified alerts into suggested actions:
- conjunctions: in-plane / out-of-plane avoidance maneuvers sized from the
  RIC position uncertainty, or a monitor action when nothing can be sized
- space weather: safe-mode windows for high Kp and imminent CME arrival

Generation is a pure function of the alert, the clock and the active
threshold snapshot.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from eyewitness.models.alert import ConjunctionAlert, SpaceWeatherAlert
from eyewitness.models.decision import ActionType, SuggestedAction
from eyewitness.models.thresholds import ManeuverPolicy, Thresholds
from eyewitness.services.risk import cme_hours_to_eta, hours_until, kp_exceeds_warning

logger = logging.getLogger(__name__)

LOOKAHEAD_HOURS = 72.0
# Planning buffer before the burn window opens and before TCA
MANEUVER_BUFFER = timedelta(hours=1)
KP_SAFE_MODE_DURATION = timedelta(hours=24)


@dataclass(frozen=True)
class ManeuverCandidate:
    label: str
    delta_v_mps: float
    improvement_km: float


def size_maneuvers(
    sigma_tangential_km: float,
    sigma_normal_km: float,
    policy: ManeuverPolicy,
) -> List[ManeuverCandidate]:
    """Linear sizing of the in-plane and out-of-plane candidates."""
    in_plane_dv = min(sigma_tangential_km * policy.scale_factor, policy.in_plane_cap_mps)
    out_of_plane_dv = min(sigma_normal_km * policy.scale_factor, policy.out_of_plane_cap_mps)
    return [
        ManeuverCandidate(
            label="In-plane",
            delta_v_mps=in_plane_dv,
            improvement_km=in_plane_dv * policy.in_plane_improvement_km_per_mps,
        ),
        ManeuverCandidate(
            label="Out-of-plane",
            delta_v_mps=out_of_plane_dv,
            improvement_km=out_of_plane_dv * policy.out_of_plane_improvement_km_per_mps,
        ),
    ]


def _action_id(kind: str) -> str:
    return f"{kind}-{uuid4().hex[:12]}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DecisionEngine:
    def __init__(
        self,
        thresholds: Optional[Thresholds] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self._thresholds = thresholds or Thresholds()
        self._lock = threading.Lock()
        self._clock = clock

    def get_thresholds(self) -> Thresholds:
        with self._lock:
            return self._thresholds

    def update_thresholds(self, new_thresholds: Thresholds) -> Thresholds:
        """
        Swap in a new threshold snapshot for all later calls.

        Alerts and decisions issued earlier keep the severity they were
        given.
        """
        with self._lock:
            previous = self._thresholds
            self._thresholds = new_thresholds
        logger.info(f"Decision engine thresholds updated: {new_thresholds.model_dump()}")
        return previous

    def analyze_conjunction(
        self,
        alert: ConjunctionAlert,
        now: Optional[datetime] = None,
    ) -> List[SuggestedAction]:
        now = now or self._clock()
        thresholds = self.get_thresholds()

        hours_to_tca = hours_until(alert.tca, now)
        if hours_to_tca > LOOKAHEAD_HOURS:
            logger.debug(
                f"Conjunction {alert.id} is {hours_to_tca:.1f} h out, beyond the "
                f"{LOOKAHEAD_HOURS:g} h horizon"
            )
            return []

        actions: List[SuggestedAction] = []
        window_start = now + MANEUVER_BUFFER
        window_end = alert.tca - MANEUVER_BUFFER

        if alert.has_uncertainty:
            if window_start >= window_end:
                logger.info(
                    f"Conjunction {alert.id}: TCA too close for a burn window, monitoring only"
                )
            else:
                for candidate in size_maneuvers(
                    alert.sigma_tangential_km, alert.sigma_normal_km, thresholds.maneuver
                ):
                    if candidate.improvement_km <= 0:
                        continue
                    actions.append(
                        SuggestedAction(
                            id=_action_id("maneuver"),
                            type=ActionType.MANEUVER,
                            delta_v_mps=candidate.delta_v_mps,
                            direction=f"{candidate.label} maneuver to increase miss distance",
                            rationale=(
                                f"{candidate.label} delta-V of {candidate.delta_v_mps:.2f} m/s "
                                f"can improve miss distance by {candidate.improvement_km:.2f} km"
                            ),
                            expected_risk_delta=-candidate.improvement_km,
                            window_start=window_start,
                            window_end=window_end,
                        )
                    )

        if not actions:
            actions.append(
                SuggestedAction(
                    id=_action_id("monitor"),
                    type=ActionType.MONITOR,
                    rationale="Continue monitoring - no immediate action required",
                )
            )

        return actions

    def analyze_space_weather(
        self,
        alert: SpaceWeatherAlert,
        now: Optional[datetime] = None,
    ) -> List[SuggestedAction]:
        now = now or self._clock()
        thresholds = self.get_thresholds()
        limits = thresholds.space_weather
        actions: List[SuggestedAction] = []

        if kp_exceeds_warning(alert.kp, thresholds):
            actions.append(
                SuggestedAction(
                    id=_action_id("safe-mode-kp"),
                    type=ActionType.SAFE_MODE,
                    rationale=(
                        f"Kp index of {alert.kp:g} meets or exceeds warning threshold "
                        f"of {limits.kp_warning:g}"
                    ),
                    window_start=now,
                    window_end=now + KP_SAFE_MODE_DURATION,
                )
            )

        hours_to_eta = cme_hours_to_eta(alert.cme_eta_start, alert.cme_eta_end, now)
        if hours_to_eta is not None and hours_to_eta < limits.cme_hours_to_eta_critical:
            actions.append(
                SuggestedAction(
                    id=_action_id("safe-mode-cme"),
                    type=ActionType.SAFE_MODE,
                    rationale=(
                        f"CME expected in {hours_to_eta:.1f} hours (critical threshold: "
                        f"{limits.cme_hours_to_eta_critical:g} hours)"
                    ),
                    window_start=now,
                    window_end=alert.cme_eta_end,
                )
            )

        return actions
