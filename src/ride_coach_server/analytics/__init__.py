"""Training analytics: pure functions over already-fetched athlete data."""

from ride_coach_server.analytics.power_curve import POWER_WINDOWS, best_power_curve, ratchet
from ride_coach_server.analytics.recommender import recommend_next_workout
from ride_coach_server.analytics.ride import analyze_ride
from ride_coach_server.analytics.scoring import score_execution
from ride_coach_server.analytics.stats import best_window_average, robust_filter
from ride_coach_server.analytics.thresholds import (
    FtpEstimate,
    HrEstimate,
    estimate_ftp,
    estimate_ftp_from_streams,
    estimate_hr,
)
from ride_coach_server.analytics.volume import compute_volume_summary, compute_weekly_load

__all__ = [
    "POWER_WINDOWS",
    "FtpEstimate",
    "HrEstimate",
    "analyze_ride",
    "best_power_curve",
    "best_window_average",
    "compute_volume_summary",
    "compute_weekly_load",
    "estimate_ftp",
    "estimate_ftp_from_streams",
    "estimate_hr",
    "ratchet",
    "recommend_next_workout",
    "robust_filter",
    "score_execution",
]
