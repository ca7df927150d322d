"""Tests for the numeric helpers over 1 Hz series."""

import math
import random

import pytest

from ride_coach_server.analytics.stats import (
    best_window,
    best_window_average,
    finite_values,
    max_or_none,
    mean_or_none,
    median_or_none,
    robust_filter,
    round_half_up,
    window_mean,
)
from tests.fixtures import blocks


def brute_force_best(series: list[float | None], window: int) -> float | None:
    """Reference implementation: average every window explicitly."""
    if window <= 0 or len(series) < window:
        return None
    samples = [0.0 if v is None else v for v in series]
    return max(sum(samples[i : i + window]) / window for i in range(len(samples) - window + 1))


class TestBestWindow:
    """Tests for the sliding-window maximum mean."""

    def test_twenty_minute_block_after_warmup(self) -> None:
        """1300 samples: 100 s easy then 1200 s at 200 W -> best 20 min is 200 W."""
        series = blocks((100, 100.0), (1200, 200.0))
        assert len(series) == 1300
        assert best_window_average(series, 1200) == 200.0

    def test_returns_first_best_start(self) -> None:
        series = [1.0, 5.0, 5.0, 1.0, 5.0, 5.0]
        assert best_window(series, 2) == (5.0, 1)

    @pytest.mark.parametrize("window", [1, 7, 30, 60, 180])
    def test_matches_brute_force(self, window: int) -> None:
        rng = random.Random(window)
        series: list[float | None] = [
            None if rng.random() < 0.05 else rng.uniform(0, 600) for _ in range(400)
        ]
        expected = brute_force_best(series, window)
        assert best_window_average(series, window) == pytest.approx(expected)

    def test_window_longer_than_series(self) -> None:
        assert best_window_average([200.0] * 59, 60) is None

    @pytest.mark.parametrize("window", [0, -5])
    def test_non_positive_window(self, window: int) -> None:
        assert best_window_average([200.0] * 100, window) is None

    def test_empty_and_all_missing(self) -> None:
        assert best_window_average([], 1) is None
        assert best_window_average([None, float("nan"), None], 2) is None

    def test_dropouts_count_as_zero(self) -> None:
        assert best_window_average([100.0, None, 100.0], 3) == pytest.approx(200 / 3)


class TestRobustFilter:
    """Tests for range and MAD outlier removal."""

    def test_range_bounds_are_inclusive(self) -> None:
        assert robust_filter([99, 100, 230, 231], minimum=100, maximum=230) == [100, 230]

    def test_removes_spike(self) -> None:
        values = [176, 177, 178, 179, 180, 181, 229]
        assert robust_filter(values) == [176, 177, 178, 179, 180, 181]

    def test_idempotent(self) -> None:
        rng = random.Random(42)
        values = [rng.gauss(180, 4) for _ in range(40)] + [260.0, 90.0, 140.0]
        once = robust_filter(values)
        assert robust_filter(once) == once

    def test_small_sets_skip_mad(self) -> None:
        assert robust_filter([150, 220]) == [150, 220]

    def test_zero_mad_keeps_values(self) -> None:
        assert robust_filter([180, 180, 180, 175, 172]) == [180, 180, 180, 175, 172]

    def test_drops_non_finite(self) -> None:
        assert robust_filter([None, float("inf"), 170, float("nan")]) == [170]


class TestScalarHelpers:
    """Tests for rounding and aggregate helpers."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(162.5, 163), (2.5, 3), (2.4999, 2), (-2.5, -3), (0.0, 0)],
    )
    def test_round_half_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected

    def test_finite_values_ignores_booleans(self) -> None:
        assert finite_values([True, 1, None, math.nan, 2.5]) == [1.0, 2.5]

    def test_aggregates_of_nothing(self) -> None:
        assert mean_or_none([]) is None
        assert max_or_none([None]) is None
        assert median_or_none([math.inf]) is None

    def test_aggregates(self) -> None:
        assert mean_or_none([1, 2, None, 3]) == 2.0
        assert max_or_none([1, 7, None]) == 7.0
        assert median_or_none([5, 1, 3]) == 3.0

    def test_window_mean_ignores_zero_and_missing(self) -> None:
        assert window_mean([0, 150, None, 160, 170], 0, 4) == 155.0
        assert window_mean(None, 0, 4) is None
        assert window_mean([0, 0], 0, 2) is None
