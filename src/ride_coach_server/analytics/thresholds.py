"""FTP and heart-rate threshold estimation.

FTP fuses several models computed from the best 20-min and 3-min efforts of
recent rides; heart rate is derived from the per-ride maxima after robust
outlier removal. Top-3 averaging and MAD filtering bound the influence of a
single ride or a sensor glitch.
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from statistics import fmean

from ride_coach_server.analytics.power_curve import WINDOW_3MIN, WINDOW_20MIN, best_efforts
from ride_coach_server.analytics.stats import finite_values, robust_filter, round_half_up

TOP_EFFORTS = 3

FTP_FROM_20MIN_FACTOR = 0.95
FTP_FROM_3MIN_FACTOR = 0.80

HR_MAX_BOUNDS = (100.0, 230.0)
HR_THRESHOLD_FACTOR = 0.90


@dataclass(frozen=True)
class FtpEstimate:
    """FTP models from one estimation run; absent models are None."""

    ftp20: int | None = None
    ftp_from_3min: int | None = None
    ftp_from_cp: int | None = None
    ftp_recommended: int | None = None
    top20_mean: float | None = None
    top3_mean: float | None = None

    @property
    def has_models(self) -> bool:
        """Whether any power-derived model could be computed."""
        return any(v is not None for v in (self.ftp20, self.ftp_from_3min, self.ftp_from_cp))


@dataclass(frozen=True)
class HrEstimate:
    """Heart-rate thresholds from one estimation run."""

    hr_max: int
    hr_threshold: int
    candidates_used: int


def top_mean(values: Iterable[float], count: int = TOP_EFFORTS) -> float | None:
    """Mean of the ``count`` largest finite values (fewer if fewer exist)."""
    top = sorted(finite_values(values), reverse=True)[:count]
    return fmean(top) if top else None


def index_median(candidates: Iterable[int | float]) -> int | float | None:
    """Element at index ``n // 2`` of the sorted candidates.

    With an even count this picks the upper of the two middle values rather
    than averaging them: ``[245, 250, 260, 300]`` gives 260.
    """
    ordered = sorted(candidates)
    if not ordered:
        return None
    return ordered[len(ordered) // 2]


def critical_power(mean20: float, mean3: float) -> float:
    """Two-point critical power from 20-min and 3-min mean powers."""
    return (mean20 * WINDOW_20MIN - mean3 * WINDOW_3MIN) / (WINDOW_20MIN - WINDOW_3MIN)


def _round_watts(value: float | None) -> int | None:
    if value is None or not math.isfinite(value):
        return None
    return round_half_up(value)


def estimate_ftp(
    efforts_20min: Sequence[float],
    efforts_3min: Sequence[float],
    manual_ftp: int | None = None,
) -> FtpEstimate:
    """Fuse the FTP models into a recommendation.

    Args:
        efforts_20min: Best 20-min mean power of each ride in the window
        efforts_3min: Best 3-min mean power of each ride in the window
        manual_ftp: FTP from Strava or manual entry, joins the candidate list

    Returns:
        FtpEstimate; models that could not be computed are None
    """
    mean20 = top_mean(efforts_20min)
    mean3 = top_mean(efforts_3min)

    ftp20 = _round_watts(mean20 * FTP_FROM_20MIN_FACTOR) if mean20 else None
    ftp_from_3min = _round_watts(mean3 * FTP_FROM_3MIN_FACTOR) if mean3 else None

    ftp_from_cp = None
    if mean20 and mean3:
        cp = critical_power(mean20, mean3)
        if cp > 0:
            ftp_from_cp = _round_watts(cp)

    candidates = [
        v
        for v in (ftp20, ftp_from_3min, ftp_from_cp, manual_ftp)
        if v is not None and v > 0
    ]
    recommended = index_median(candidates)

    return FtpEstimate(
        ftp20=ftp20,
        ftp_from_3min=ftp_from_3min,
        ftp_from_cp=ftp_from_cp,
        ftp_recommended=int(recommended) if recommended is not None else None,
        top20_mean=mean20,
        top3_mean=mean3,
    )


def estimate_ftp_from_streams(
    watts_series: Iterable[Sequence[float | int | None]], manual_ftp: int | None = None
) -> FtpEstimate:
    """Extract per-ride 20-min and 3-min bests from raw series, then estimate FTP."""
    efforts_20: list[float] = []
    efforts_3: list[float] = []
    for watts in watts_series:
        efforts = best_efforts(watts, (WINDOW_20MIN, WINDOW_3MIN))
        if WINDOW_20MIN in efforts:
            efforts_20.append(efforts[WINDOW_20MIN])
        if WINDOW_3MIN in efforts:
            efforts_3.append(efforts[WINDOW_3MIN])
    return estimate_ftp(efforts_20, efforts_3, manual_ftp)


def estimate_hr(max_hr_values: Iterable[float | int | None]) -> HrEstimate | None:
    """Estimate max and threshold heart rate from per-ride maxima.

    Values outside 100-230 bpm and MAD outliers are discarded first.

    Returns:
        HrEstimate, or None when no value survives filtering
    """
    low, high = HR_MAX_BOUNDS
    filtered = robust_filter(max_hr_values, minimum=low, maximum=high)
    top = top_mean(filtered)
    if top is None:
        return None

    hr_max = round_half_up(top)
    return HrEstimate(
        hr_max=hr_max,
        hr_threshold=round_half_up(hr_max * HR_THRESHOLD_FACTOR),
        candidates_used=len(filtered),
    )


def ftp_patch(estimate: FtpEstimate) -> Mapping[str, int | None]:
    """Training-params fields produced by an FTP estimate (nulls are dropped on merge)."""
    return {
        "ftp20": estimate.ftp20,
        "ftp_from_3min": estimate.ftp_from_3min,
        "ftp_from_cp": estimate.ftp_from_cp,
        "ftp_recommended": estimate.ftp_recommended,
    }
