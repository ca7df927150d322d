"""Power curve extraction: best sustained mean power per window duration."""

from collections.abc import Iterable, Mapping, Sequence

from ride_coach_server.analytics.stats import best_window_average

# Shared window enumeration for the power curve and the FTP models (1, 3, 5, 8, 20 min)
POWER_WINDOWS: tuple[int, ...] = (60, 180, 300, 480, 1200)

WINDOW_3MIN = 180
WINDOW_20MIN = 1200


def best_efforts(
    watts: Sequence[float | int | None], windows: Iterable[int] = POWER_WINDOWS
) -> dict[int, float]:
    """Best mean power of one series for each window it is long enough for.

    Windows longer than the series, and windows whose best mean is not
    positive, are left out.
    """
    efforts = {}
    for window_sec in windows:
        avg = best_window_average(watts, window_sec)
        if avg is not None and avg > 0:
            efforts[window_sec] = avg
    return efforts


def best_power_curve(
    series: Iterable[Sequence[float | int | None]], windows: Iterable[int] = POWER_WINDOWS
) -> dict[int, float]:
    """Best mean power per window across several series.

    Args:
        series: Watts series (1 Hz), typically one per activity
        windows: Window durations in seconds

    Returns:
        Mapping of window to best mean power; windows no series could fill are absent
    """
    windows = tuple(windows)
    curve: dict[int, float] = {}
    for watts in series:
        for window_sec, avg in best_efforts(watts, windows).items():
            if avg > curve.get(window_sec, 0.0):
                curve[window_sec] = avg
    return curve


def ratchet(candidate: Mapping[int, float], stored: Mapping[int, float]) -> dict[int, float]:
    """Keep only candidate points that strictly beat the stored best."""
    return {
        window_sec: power
        for window_sec, power in candidate.items()
        if power > stored.get(window_sec, 0.0)
    }
