"""Execution scoring: how closely a ride matched its intended purpose."""

from ride_coach_server.schemas.analysis import ExecutionScore, RideMetrics, RideType
from ride_coach_server.schemas.training import TrainingParamsSnapshot

# Target intensity-factor band per ride type
TARGET_IF_BANDS: dict[RideType, tuple[float, float]] = {
    RideType.RECOVERY: (0.45, 0.65),
    RideType.ENDURANCE: (0.60, 0.80),
    RideType.TEMPO: (0.75, 0.90),
    RideType.SWEETSPOT_OR_THRESHOLD: (0.85, 1.05),
    RideType.INTENSITY: (0.90, 1.20),
}
DEFAULT_IF_BAND = (0.50, 0.75)

MAJOR_PENALTY = 10
MINOR_PENALTY = 5

DURATION_WIDE_BAND = (0.70, 1.30)
DURATION_NARROW_BAND = (0.85, 1.15)

DECOUPLING_MAJOR_PCT = 7.0
DECOUPLING_MINOR_PCT = 4.0

Z4_MAJOR_FRACTION = 0.10
Z4_MINOR_FRACTION = 0.05

ENDURANCE_TYPES = frozenset({RideType.ENDURANCE, RideType.ENDURANCE_LONG})


def _outside(value: float, band: tuple[float, float]) -> bool:
    return value < band[0] or value > band[1]


def duration_penalty(duration_sec: int, avg_duration_sec: float | None) -> int:
    """Penalty for straying from the athlete's usual ride length."""
    if not avg_duration_sec or avg_duration_sec <= 0:
        return 0
    ratio = duration_sec / avg_duration_sec
    if _outside(ratio, DURATION_WIDE_BAND):
        return MAJOR_PENALTY
    if _outside(ratio, DURATION_NARROW_BAND):
        return MINOR_PENALTY
    return 0


def intensity_penalty(intensity_factor: float | None, ride_type: RideType) -> int:
    """All-or-nothing penalty when IF falls outside the ride type's band."""
    if intensity_factor is None:
        return 0
    band = TARGET_IF_BANDS.get(ride_type, DEFAULT_IF_BAND)
    return MAJOR_PENALTY if _outside(intensity_factor, band) else 0


def decoupling_penalty(decoupling_pct: float | None) -> int:
    """Penalty for aerobic drift above 4% / 7%."""
    if decoupling_pct is None:
        return 0
    magnitude = abs(decoupling_pct)
    if magnitude > DECOUPLING_MAJOR_PCT:
        return MAJOR_PENALTY
    if magnitude > DECOUPLING_MINOR_PCT:
        return MINOR_PENALTY
    return 0


def zone_purity_penalty(metrics: RideMetrics) -> int:
    """Penalty for threshold work sneaking into endurance rides."""
    if metrics.ride_type not in ENDURANCE_TYPES:
        return 0
    z4 = metrics.zones.fraction(4)
    if z4 > Z4_MAJOR_FRACTION:
        return MAJOR_PENALTY
    if z4 > Z4_MINOR_FRACTION:
        return MINOR_PENALTY
    return 0


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def score_execution(
    metrics: RideMetrics,
    params: TrainingParamsSnapshot | None = None,
    avg_duration_sec: float | None = None,
) -> ExecutionScore | None:
    """Score a ride from 0 to 100 by subtracting independent penalties.

    Args:
        metrics: Metrics of the ride being scored
        params: Training parameters; used to derive IF when metrics lack it
        avg_duration_sec: Historical average ride duration (duration check is
            skipped without it)

    Returns:
        ExecutionScore, or None when the ride has no duration
    """
    if metrics.duration_sec is None:
        return None

    intensity_factor = metrics.intensity_factor
    if intensity_factor is None and params is not None and params.ftp and metrics.avg_power:
        intensity_factor = metrics.avg_power / params.ftp

    penalties = {
        "duration": duration_penalty(metrics.duration_sec, avg_duration_sec),
        "intensity": intensity_penalty(intensity_factor, metrics.ride_type),
        "decoupling": decoupling_penalty(metrics.decoupling_pct),
        "zone_purity": zone_purity_penalty(metrics),
    }

    return ExecutionScore(
        score=_clamp(100 - sum(penalties.values())),
        duration=_clamp(100 - penalties["duration"]),
        intensity=_clamp(100 - penalties["intensity"]),
        decoupling=_clamp(100 - penalties["decoupling"]),
        zone_purity=_clamp(100 - penalties["zone_purity"]),
        target_if_range=TARGET_IF_BANDS.get(metrics.ride_type, DEFAULT_IF_BAND),
    )
