"""Per-ride analysis: zone times, aerobic decoupling and ride-type classification."""

from collections.abc import Sequence
from statistics import fmean

from ride_coach_server.analytics.stats import best_window, mean_or_none, to_sample, window_mean
from ride_coach_server.schemas.analysis import (
    DecouplingLevel,
    RideMetrics,
    RideType,
    SubEffort,
    ZoneBasis,
    ZoneTimes,
)
from ride_coach_server.schemas.records import ActivityRecord, RideStreams
from ride_coach_server.schemas.training import TrainingParamsSnapshot

# Upper bounds (exclusive) of zones 1-4 as a fraction of FTP / HR threshold
POWER_ZONE_BREAKS = (0.55, 0.75, 0.90, 1.05)
HR_ZONE_BREAKS = (0.75, 0.90, 1.00, 1.05)

MIN_DECOUPLING_SAMPLES = 20

SUB_EFFORT_WINDOWS = (60, 300, 1200)

SECONDS_PER_SAMPLE = 1


def zone_for_ratio(ratio: float, breaks: Sequence[float]) -> int:
    """Zone number (1-5) for an intensity ratio."""
    for zone, upper in enumerate(breaks, start=1):
        if ratio < upper:
            return zone
    return len(breaks) + 1


def _at(series: Sequence[float | int | None] | None, index: int) -> float | None:
    if not series or index >= len(series):
        return None
    return to_sample(series[index])


def compute_zone_times(
    watts: Sequence[float | int | None] | None,
    heartrate: Sequence[float | int | None] | None,
    ftp: int | None,
    hr_threshold: int | None,
) -> tuple[ZoneTimes, ZoneBasis | None]:
    """Accumulate seconds per zone, sample by sample.

    A sample is classified by power / FTP whenever it has a power reading and
    FTP is known, otherwise by heart rate / threshold. A ride with power
    dropouts therefore mixes both bases.

    Returns:
        Zone times and the basis used (None when nothing could be classified)
    """
    seconds = [0, 0, 0, 0, 0]
    used_power = used_hr = False
    length = max(len(watts or []), len(heartrate or []))
    power_base = float(ftp) if ftp and ftp > 0 else None
    hr_base = float(hr_threshold) if hr_threshold and hr_threshold > 0 else None

    for i in range(length):
        power = _at(watts, i) if power_base else None
        if power_base and power is not None and power >= 0:
            seconds[zone_for_ratio(power / power_base, POWER_ZONE_BREAKS) - 1] += SECONDS_PER_SAMPLE
            used_power = True
            continue

        hr = _at(heartrate, i) if hr_base else None
        if hr_base and hr is not None and hr > 0:
            seconds[zone_for_ratio(hr / hr_base, HR_ZONE_BREAKS) - 1] += SECONDS_PER_SAMPLE
            used_hr = True

    if used_power and used_hr:
        basis = ZoneBasis.MIXED
    elif used_power:
        basis = ZoneBasis.POWER
    elif used_hr:
        basis = ZoneBasis.HEART_RATE
    else:
        basis = None

    zones = ZoneTimes(z1=seconds[0], z2=seconds[1], z3=seconds[2], z4=seconds[3], z5=seconds[4])
    return zones, basis


def _mean_hr_power_ratio(
    watts: Sequence[float | int | None], heartrate: Sequence[float | int | None]
) -> float | None:
    ratios = []
    for p_raw, h_raw in zip(watts, heartrate):
        p, h = to_sample(p_raw), to_sample(h_raw)
        if p is not None and h is not None and p > 0 and h > 0:
            ratios.append(h / p)
    return fmean(ratios) if ratios else None


def compute_decoupling(
    watts: Sequence[float | int | None] | None,
    heartrate: Sequence[float | int | None] | None,
) -> float | None:
    """Aerobic decoupling: change in mean HR/power ratio from first to second half.

    The ratio is averaged sample by sample over samples where both channels
    are positive. Returns None when a channel is missing or shorter than
    ``MIN_DECOUPLING_SAMPLES``, or when a half has no usable sample or a
    non-positive first-half ratio.
    """
    if not watts or not heartrate:
        return None
    if len(watts) < MIN_DECOUPLING_SAMPLES or len(heartrate) < MIN_DECOUPLING_SAMPLES:
        return None

    n = min(len(watts), len(heartrate))
    half = n // 2
    first = _mean_hr_power_ratio(watts[:half], heartrate[:half])
    second = _mean_hr_power_ratio(watts[half:n], heartrate[half:n])
    if first is None or second is None or first <= 0:
        return None

    return (second - first) / first * 100


def decoupling_level(decoupling_pct: float | None) -> DecouplingLevel | None:
    """Low under 5%, moderate under 10%, high otherwise (by magnitude)."""
    if decoupling_pct is None:
        return None
    magnitude = abs(decoupling_pct)
    if magnitude < 5:
        return DecouplingLevel.LOW
    if magnitude < 10:
        return DecouplingLevel.MODERATE
    return DecouplingLevel.HIGH


def classify_ride(
    intensity_factor: float | None, zones: ZoneTimes, duration_sec: int | None
) -> RideType:
    """Classify a ride by intensity factor, or by duration when IF is unknown."""
    if intensity_factor is not None:
        z4 = zones.fraction(4)
        if intensity_factor < 0.65:
            return RideType.RECOVERY
        if intensity_factor < 0.80 and z4 < 0.05:
            return RideType.ENDURANCE
        if intensity_factor < 0.90:
            return RideType.TEMPO
        if intensity_factor <= 1.05 or z4 > 0.15:
            return RideType.SWEETSPOT_OR_THRESHOLD
        return RideType.INTENSITY

    if duration_sec is None:
        return RideType.UNKNOWN
    minutes = duration_sec / 60
    if minutes < 45:
        return RideType.RECOVERY
    if minutes < 90:
        return RideType.ENDURANCE
    return RideType.ENDURANCE_LONG


def intensity_note(intensity_factor: float | None) -> str | None:
    """Short reading of what the intensity factor means for the athlete."""
    if intensity_factor is None:
        return None
    if intensity_factor < 0.7:
        return "Aerobic base or recovery ride: builds the base without adding much fatigue."
    if intensity_factor < 0.85:
        return "Moderate endurance ride: good for long-term aerobic fitness."
    return "Hard ride: expect meaningful fatigue and plan recovery accordingly."


def compute_sub_efforts(
    watts: Sequence[float | int | None] | None,
    heartrate: Sequence[float | int | None] | None,
    ftp: int | None,
    windows: Sequence[int] = SUB_EFFORT_WINDOWS,
) -> list[SubEffort]:
    """Best 1/5/20-minute efforts of the ride, each with % of FTP and mean HR."""
    if not watts:
        return []
    efforts = []
    for window_sec in windows:
        found = best_window(watts, window_sec)
        if found is None or found[0] <= 0:
            continue
        avg, start = found
        efforts.append(
            SubEffort(
                window_sec=window_sec,
                avg_power=round(avg, 1),
                pct_ftp=round(avg / ftp * 100, 1) if ftp else None,
                start_offset_sec=start * SECONDS_PER_SAMPLE,
                avg_hr=_round_opt(window_mean(heartrate, start, window_sec), 1),
            )
        )
    return efforts


def _round_opt(value: float | None, digits: int) -> float | None:
    return round(value, digits) if value is not None else None


def _positive_mean(series: Sequence[float | int | None] | None) -> float | None:
    if not series:
        return None
    return mean_or_none(s for s in map(to_sample, series) if s is not None and s > 0)


def analyze_ride(
    activity: ActivityRecord,
    streams: RideStreams,
    params: TrainingParamsSnapshot | None,
    weight_kg: float | None = None,
) -> RideMetrics:
    """Derive RideMetrics for one activity.

    Args:
        activity: The ride
        streams: Its 1 Hz watts / heart-rate series (either may be None)
        params: Owner's current training parameters
        weight_kg: Athlete weight for W/kg figures (optional)

    Returns:
        RideMetrics; fields that cannot be derived are None
    """
    params = params or TrainingParamsSnapshot()
    ftp = params.ftp
    hr_threshold = params.hr_threshold if params.hr_threshold and params.hr_threshold > 0 else None
    watts, heartrate = streams.watts, streams.heartrate

    if activity.moving_time_sec and activity.moving_time_sec > 0:
        duration_sec: int | None = activity.moving_time_sec
    elif streams.sample_count > 0:
        duration_sec = streams.sample_count * SECONDS_PER_SAMPLE
    else:
        duration_sec = None

    avg_power = mean_or_none(watts or [])
    if avg_power is None:
        avg_power = activity.avg_power
    avg_hr = _positive_mean(heartrate)
    if avg_hr is None:
        avg_hr = activity.avg_hr

    intensity_factor = avg_power / ftp if avg_power is not None and ftp else None

    zones, basis = compute_zone_times(watts, heartrate, ftp, hr_threshold)
    decoupling = compute_decoupling(watts, heartrate)

    avg_power_wkg = ftp_wkg = None
    if weight_kg is not None and weight_kg > 0:
        if avg_power is not None:
            avg_power_wkg = round(avg_power / weight_kg, 2)
        if ftp is not None:
            ftp_wkg = round(ftp / weight_kg, 2)

    return RideMetrics(
        activity_id=activity.id,
        start_time=activity.start_time,
        category=activity.category,
        duration_sec=duration_sec,
        distance_km=_round_opt(activity.distance_m / 1000 if activity.distance_m else None, 1),
        elevation_gain_m=activity.elevation_gain_m,
        avg_power=_round_opt(avg_power, 1),
        avg_hr=_round_opt(avg_hr, 1),
        ftp_used=ftp,
        hr_threshold_used=hr_threshold,
        intensity_factor=_round_opt(intensity_factor, 3),
        zones=zones,
        zone_basis=basis,
        decoupling_pct=_round_opt(decoupling, 2),
        decoupling_level=decoupling_level(decoupling),
        ride_type=classify_ride(intensity_factor, zones, duration_sec),
        intensity_note=intensity_note(intensity_factor),
        best_efforts=compute_sub_efforts(watts, heartrate, ftp),
        avg_power_wkg=avg_power_wkg,
        ftp_wkg=ftp_wkg,
    )
