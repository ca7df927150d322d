"""Rule-based next-workout recommendation.

Rules are evaluated in order and the first match wins:

1. weekly overload: hours in the last 7 days above 1.2x target -> recovery
2. hard last ride (threshold/intensity type, IF > 0.9, or decoupling > 7%) -> recovery
3. endurance last ride -> tempo
4. otherwise -> endurance
"""

from dataclasses import dataclass

from ride_coach_server.analytics.stats import round_half_up
from ride_coach_server.schemas.analysis import (
    RideMetrics,
    RideType,
    TargetRange,
    VolumeSummary,
    WeeklyLoad,
    WorkoutRecommendation,
)
from ride_coach_server.schemas.training import TrainingParamsSnapshot

OVERLOAD_RATIO = 1.2
HARD_INTENSITY_FACTOR = 0.9
HARD_DECOUPLING_PCT = 7.0
RECOVERY_MIN_MINUTES = 45

HARD_RIDE_TYPES = frozenset({RideType.SWEETSPOT_OR_THRESHOLD, RideType.INTENSITY})
ENDURANCE_RIDE_TYPES = frozenset({RideType.ENDURANCE, RideType.ENDURANCE_LONG})

# Target bands as fractions of FTP and of HR threshold
POWER_BANDS: dict[RideType, tuple[float, float]] = {
    RideType.RECOVERY: (0.45, 0.60),
    RideType.ENDURANCE: (0.60, 0.75),
    RideType.TEMPO: (0.75, 0.90),
}
HR_BANDS: dict[RideType, tuple[float, float]] = {
    RideType.RECOVERY: (0.60, 0.75),
    RideType.ENDURANCE: (0.70, 0.85),
    RideType.TEMPO: (0.80, 0.92),
}


@dataclass(frozen=True)
class DurationProfile:
    """Typical ride durations in minutes."""

    min_minutes: int
    avg_minutes: int
    max_minutes: int

    @classmethod
    def from_volume(cls, volume: VolumeSummary) -> "DurationProfile":
        return cls(
            min_minutes=round_half_up(volume.min_duration_sec / 60),
            avg_minutes=round_half_up(volume.avg_duration_sec / 60),
            max_minutes=round_half_up(volume.max_duration_sec / 60),
        )

    @classmethod
    def from_single_ride(cls, duration_sec: int) -> "DurationProfile":
        minutes = round_half_up(duration_sec / 60)
        return cls(min_minutes=minutes, avg_minutes=minutes, max_minutes=minutes)


def _band(base: int | None, fractions: tuple[float, float]) -> TargetRange | None:
    if not base or base <= 0:
        return None
    low, high = fractions
    return TargetRange(low=round_half_up(base * low), high=round_half_up(base * high))


def _ordered(low: int, high: int) -> tuple[int, int]:
    return (low, high) if low <= high else (high, low)


def is_hard_ride(ride: RideMetrics) -> bool:
    """Whether the ride calls for recovery on its own account."""
    if ride.ride_type in HARD_RIDE_TYPES:
        return True
    if ride.intensity_factor is not None and ride.intensity_factor > HARD_INTENSITY_FACTOR:
        return True
    return ride.decoupling_pct is not None and ride.decoupling_pct > HARD_DECOUPLING_PCT


def recommend_next_workout(
    last_ride: RideMetrics,
    params: TrainingParamsSnapshot | None,
    volume: VolumeSummary | None,
    weekly_load: WeeklyLoad | None = None,
) -> WorkoutRecommendation | None:
    """Propose the next session from the last ride and recent load.

    Args:
        last_ride: Metrics of the most recent ride
        params: Owner's training parameters (FTP and HR threshold for targets)
        volume: Volume summary of the lookback window; durations fall back to
            the last ride when absent
        weekly_load: Hours in the last 7 days against target; the overload
            rule is skipped without a target

    Returns:
        WorkoutRecommendation, or None when the last ride has no duration
    """
    if last_ride.duration_sec is None:
        return None

    params = params or TrainingParamsSnapshot()
    if volume is not None and volume.rides_count > 0:
        durations = DurationProfile.from_volume(volume)
    else:
        durations = DurationProfile.from_single_ride(last_ride.duration_sec)

    recovery_range = (RECOVERY_MIN_MINUTES, max(RECOVERY_MIN_MINUTES, durations.min_minutes))
    overloaded = (
        weekly_load is not None
        and weekly_load.load_ratio is not None
        and weekly_load.load_ratio > OVERLOAD_RATIO
    )

    if overloaded and weekly_load is not None:
        workout_type = RideType.RECOVERY
        duration_range = recovery_range
        rule = "weekly_overload"
        rationale = (
            f"{weekly_load.hours_last_7d:.1f} h ridden in the last 7 days against a target "
            f"of {weekly_load.target_hours:.1f} h: keep the next ride easy to absorb the load."
        )
    elif is_hard_ride(last_ride):
        workout_type = RideType.RECOVERY
        duration_range = recovery_range
        rule = "hard_last_ride"
        if last_ride.decoupling_pct is not None and last_ride.decoupling_pct > HARD_DECOUPLING_PCT:
            rationale = (
                f"Heart rate drifted {last_ride.decoupling_pct:.1f}% against power in the last "
                "ride: recover before the next quality session."
            )
        else:
            rationale = "The last ride was hard: an easy spin helps you recover and adapt."
    elif last_ride.ride_type in ENDURANCE_RIDE_TYPES:
        workout_type = RideType.TEMPO
        duration_range = _ordered(durations.avg_minutes, durations.max_minutes)
        rule = "endurance_progression"
        rationale = "The last ride was steady endurance: add some tempo work to build on it."
    else:
        workout_type = RideType.ENDURANCE
        duration_range = _ordered(durations.min_minutes, durations.avg_minutes)
        rule = "default_endurance"
        rationale = "Build aerobic base with a steady endurance ride."

    return WorkoutRecommendation(
        workout_type=workout_type,
        duration_min_minutes=duration_range[0],
        duration_max_minutes=duration_range[1],
        power_target_watts=_band(params.ftp, POWER_BANDS[workout_type]),
        hr_target_bpm=_band(params.hr_threshold, HR_BANDS[workout_type]),
        rule=rule,
        rationale=rationale,
    )
