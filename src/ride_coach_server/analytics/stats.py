"""Numeric helpers over 1 Hz time series.

All helpers are total: degenerate input (empty, all non-finite, window longer
than the series) yields ``None`` or an empty list instead of raising.
"""

import math
from collections.abc import Iterable, Sequence
from statistics import fmean, median

import numpy as np
from scipy.stats import median_abs_deviation

# Deviation cut-off, in multiples of the median absolute deviation
MAD_CUTOFF = 3.0

# Below this many values the MAD step is skipped
MIN_VALUES_FOR_MAD = 3


def to_sample(value: float | int | None) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def finite_values(values: Iterable[float | int | None]) -> list[float]:
    """Drop None, booleans, NaN and infinities."""
    return [v for v in map(to_sample, values) if v is not None]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (162.5 -> 163)."""
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def mean_or_none(values: Iterable[float | int | None]) -> float | None:
    """Arithmetic mean of the finite values, or None when there are none."""
    vals = finite_values(values)
    return fmean(vals) if vals else None


def max_or_none(values: Iterable[float | int | None]) -> float | None:
    """Maximum of the finite values, or None when there are none."""
    vals = finite_values(values)
    return max(vals) if vals else None


def median_or_none(values: Iterable[float | int | None]) -> float | None:
    """Median of the finite values, or None when there are none."""
    vals = finite_values(values)
    return median(vals) if vals else None


def robust_filter(
    values: Iterable[float | int | None],
    minimum: float | None = None,
    maximum: float | None = None,
) -> list[float]:
    """Remove non-finite values, range outliers and MAD outliers.

    Values outside ``[minimum, maximum]`` are dropped first. The remainder is
    then trimmed of anything deviating from the median by more than
    ``MAD_CUTOFF`` times the median absolute deviation. The MAD step repeats
    until nothing more is removed, so filtering a filtered set is a no-op.
    With fewer than ``MIN_VALUES_FOR_MAD`` values, or a MAD of zero, the
    range-filtered values are returned as they are.

    Input order is preserved.

    Args:
        values: Raw candidate values
        minimum: Inclusive lower bound (optional)
        maximum: Inclusive upper bound (optional)

    Returns:
        Filtered values
    """
    vals = finite_values(values)
    if minimum is not None:
        vals = [v for v in vals if v >= minimum]
    if maximum is not None:
        vals = [v for v in vals if v <= maximum]

    while len(vals) >= MIN_VALUES_FOR_MAD:
        center = median(vals)
        mad = float(median_abs_deviation(vals, scale=1.0))
        if not math.isfinite(mad) or mad == 0:
            break

        threshold = MAD_CUTOFF * mad
        kept = [v for v in vals if abs(v - center) <= threshold]
        if len(kept) == len(vals):
            break
        vals = kept

    return vals


def _as_samples(series: Sequence[float | int | None]) -> np.ndarray | None:
    """Convert a raw stream to float samples; dropouts count as zero.

    Returns None when the series holds no finite sample at all.
    """
    converted = [to_sample(v) for v in series]
    if all(v is None for v in converted):
        return None
    return np.array([0.0 if v is None else v for v in converted], dtype=np.float64)


def best_window(
    series: Sequence[float | int | None], window_size: int
) -> tuple[float, int] | None:
    """Find the contiguous window with the highest mean.

    Uses a running sum (prefix sums over the raw samples), so the cost is
    linear in the series length regardless of the window size. Missing or
    non-finite samples count as zero.

    Args:
        series: Samples at 1 Hz
        window_size: Window length in samples

    Returns:
        ``(best_mean, start_index)`` of the first best window, or None when the
        series is shorter than the window, empty or entirely non-finite, or
        the window size is not positive
    """
    if window_size <= 0 or len(series) < window_size:
        return None

    samples = _as_samples(series)
    if samples is None:
        return None

    running = np.concatenate(([0.0], np.cumsum(samples)))
    window_sums = running[window_size:] - running[:-window_size]
    start = int(np.argmax(window_sums))
    return float(window_sums[start] / window_size), start


def best_window_average(
    series: Sequence[float | int | None], window_size: int
) -> float | None:
    """Return the maximum mean of any ``window_size`` consecutive samples."""
    found = best_window(series, window_size)
    return found[0] if found else None


def window_mean(
    series: Sequence[float | int | None] | None, start: int, window_size: int
) -> float | None:
    """Mean of the positive finite samples in ``series[start:start + window_size]``."""
    if not series or window_size <= 0 or start < 0:
        return None
    chunk = [v for v in finite_values(series[start : start + window_size]) if v > 0]
    return fmean(chunk) if chunk else None
