"""Training volume over the lookback window, and recent weekly load."""

import math
from collections.abc import Iterable
from datetime import datetime, timedelta

from ride_coach_server.analytics.stats import round_half_up
from ride_coach_server.schemas.analysis import VolumeSummary, WeeklyLoad
from ride_coach_server.schemas.records import ActivityRecord, ensure_utc

LOAD_WINDOW = timedelta(days=7)


def week_key(moment: datetime) -> tuple[int, int]:
    """Bucket a timestamp into (year, ceil(day_of_year / 7)), in UTC.

    Weeks restart every 1 January, so the last bucket of a year may hold
    only one or two days.
    """
    moment = ensure_utc(moment)
    day_of_year = moment.timetuple().tm_yday
    return moment.year, math.ceil(day_of_year / 7)


def compute_volume_summary(
    activities: Iterable[ActivityRecord], window_days: float
) -> VolumeSummary | None:
    """Summarize the rides of the lookback window.

    Args:
        activities: Rides already restricted to the window
        window_days: The window the rides were selected with (reported back)

    Returns:
        VolumeSummary, or None when there is no ride
    """
    rides = list(activities)
    if not rides:
        return None

    total_moving = 0
    total_distance_m = 0.0
    total_elevation_m = 0.0
    durations: list[int] = []
    offroad = 0
    weeks: dict[tuple[int, int], list[int]] = {}

    for ride in rides:
        moving = ride.moving_time_sec or 0
        total_moving += moving
        total_distance_m += ride.distance_m or 0.0
        total_elevation_m += ride.elevation_gain_m or 0.0
        if moving > 0:
            durations.append(moving)
        if ride.category.is_offroad:
            offroad += 1

        bucket = weeks.setdefault(week_key(ride.start_time), [0, 0])
        bucket[0] += moving
        bucket[1] += 1

    count = len(rides)
    weeks_count = len(weeks)
    return VolumeSummary(
        window_days=window_days,
        rides_count=count,
        total_moving_time_sec=total_moving,
        total_distance_km=round(total_distance_m / 1000, 1),
        total_elevation_gain_m=round_half_up(total_elevation_m),
        avg_duration_sec=round_half_up(total_moving / count),
        min_duration_sec=min(durations) if durations else 0,
        max_duration_sec=max(durations) if durations else 0,
        offroad_pct=round_half_up(offroad / count * 100),
        weeks_count=weeks_count,
        weekly_hours_avg=round(total_moving / 3600 / weeks_count, 1),
        weekly_rides_avg=round(count / weeks_count, 1),
    )


def hours_in_last_week(activities: Iterable[ActivityRecord], now: datetime) -> float:
    """Moving hours of the rides that started in the 7 days before ``now``."""
    since = ensure_utc(now) - LOAD_WINDOW
    seconds = sum(
        ride.moving_time_sec or 0
        for ride in activities
        if since <= ensure_utc(ride.start_time) <= ensure_utc(now)
    )
    return seconds / 3600


def resolve_weekly_target(
    profile_target: float | None,
    default_target: float | None,
    volume: VolumeSummary | None,
) -> float | None:
    """Weekly hours target: athlete profile, then configured default, then history."""
    for candidate in (profile_target, default_target):
        if candidate is not None and math.isfinite(candidate) and candidate > 0:
            return float(candidate)
    if volume is not None and volume.weekly_hours_avg > 0:
        return volume.weekly_hours_avg
    return None


def compute_weekly_load(
    activities: Iterable[ActivityRecord],
    now: datetime,
    target_hours: float | None,
) -> WeeklyLoad:
    """Recent hours ridden against the weekly target."""
    return WeeklyLoad(
        hours_last_7d=round(hours_in_last_week(activities, now), 2),
        target_hours=target_hours,
    )
