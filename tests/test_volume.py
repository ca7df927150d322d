"""Tests for volume summaries and weekly load."""

import math
from datetime import UTC, datetime, timedelta, timezone

import pytest

from ride_coach_server.analytics.volume import (
    compute_volume_summary,
    compute_weekly_load,
    hours_in_last_week,
    resolve_weekly_target,
    week_key,
)
from ride_coach_server.schemas.records import ActivityRecord, RideCategory


def ride(
    activity_id: int,
    start: datetime,
    moving_sec: int | None,
    category: RideCategory = RideCategory.ROAD,
    distance_m: float | None = None,
    elevation_m: float | None = None,
) -> ActivityRecord:
    return ActivityRecord(
        id=activity_id,
        owner_id="athlete-1",
        start_time=start,
        category=category,
        moving_time_sec=moving_sec,
        distance_m=distance_m,
        elevation_gain_m=elevation_m,
    )


RIDES = [
    ride(1, datetime(2026, 1, 5, 8, tzinfo=UTC), 3600, RideCategory.ROAD, 30000, 300),
    ride(2, datetime(2026, 1, 6, 8, tzinfo=UTC), 5400, RideCategory.GRAVEL, 45000, 500.5),
    ride(3, datetime(2026, 1, 20, 8, tzinfo=UTC), 1800, RideCategory.MOUNTAIN, 15000, 100),
    ride(4, datetime(2026, 1, 21, 8, tzinfo=UTC), 0, RideCategory.COMMUTING),
]


class TestWeekKey:
    """Tests for calendar-year week buckets."""

    @pytest.mark.parametrize(
        ("moment", "expected"),
        [
            (datetime(2026, 1, 1, tzinfo=UTC), (2026, 1)),
            (datetime(2026, 1, 7, tzinfo=UTC), (2026, 1)),
            (datetime(2026, 1, 8, tzinfo=UTC), (2026, 2)),
            (datetime(2026, 12, 31, tzinfo=UTC), (2026, 53)),
        ],
    )
    def test_buckets(self, moment: datetime, expected: tuple[int, int]) -> None:
        assert week_key(moment) == expected

    def test_converted_to_utc(self) -> None:
        # 7 Jan 23:30 in UTC-2 is 8 Jan in UTC
        local = datetime(2026, 1, 7, 23, 30, tzinfo=timezone(timedelta(hours=-2)))
        assert week_key(local) == (2026, 2)


class TestVolumeSummary:
    """Tests for the lookback volume summary."""

    def test_summary(self) -> None:
        summary = compute_volume_summary(RIDES, 60)
        assert summary is not None
        assert summary.window_days == 60
        assert summary.rides_count == 4
        assert summary.total_moving_time_sec == 10800
        assert summary.total_distance_km == 90.0
        assert summary.total_elevation_gain_m == 901
        assert summary.avg_duration_sec == 2700
        assert summary.min_duration_sec == 1800
        assert summary.max_duration_sec == 5400
        assert summary.offroad_pct == 50
        assert summary.weeks_count == 2
        assert summary.weekly_hours_avg == 1.5
        assert summary.weekly_rides_avg == 2.0

    def test_no_rides(self) -> None:
        assert compute_volume_summary([], 60) is None

    def test_rides_without_moving_time(self) -> None:
        summary = compute_volume_summary([RIDES[3]], 30)
        assert summary is not None
        assert summary.min_duration_sec == 0
        assert summary.max_duration_sec == 0
        assert summary.avg_duration_sec == 0
        assert summary.offroad_pct == 0


class TestWeeklyLoad:
    """Tests for recent hours against target."""

    NOW = datetime(2026, 1, 22, 8, tzinfo=UTC)

    def test_hours_in_last_week(self) -> None:
        # Rides 3 and 4 fall inside the last 7 days
        assert hours_in_last_week(RIDES, self.NOW) == 0.5

    def test_load_ratio(self) -> None:
        load = compute_weekly_load(RIDES, self.NOW, 2.0)
        assert load.hours_last_7d == 0.5
        assert load.load_ratio == 0.25

    def test_no_target_no_ratio(self) -> None:
        load = compute_weekly_load(RIDES, self.NOW, None)
        assert load.load_ratio is None

    def test_hours_rounded(self) -> None:
        rides = [ride(9, self.NOW - timedelta(hours=3), 1000)]
        assert compute_weekly_load(rides, self.NOW, 5).hours_last_7d == 0.28


class TestWeeklyTarget:
    """Tests for weekly target resolution."""

    def test_profile_first(self) -> None:
        volume = compute_volume_summary(RIDES, 60)
        assert resolve_weekly_target(6.0, 8.0, volume) == 6.0

    def test_default_second(self) -> None:
        assert resolve_weekly_target(None, 8.0, None) == 8.0

    def test_history_last(self) -> None:
        volume = compute_volume_summary(RIDES, 60)
        assert resolve_weekly_target(None, None, volume) == 1.5

    @pytest.mark.parametrize("bad", [0.0, -3.0, math.nan, math.inf])
    def test_unusable_targets_skipped(self, bad: float) -> None:
        assert resolve_weekly_target(bad, bad, None) is None
