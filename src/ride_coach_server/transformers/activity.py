"""Strava activity transformer.

Converts a Strava-shaped activity payload (``GET /athlete/activities`` item)
into an ActivityRecord.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ride_coach_server.core.exceptions import InvalidInputError
from ride_coach_server.schemas.records import ActivityRecord, RideCategory, ensure_utc

# Strava activity type -> ride category
RIDE_TYPE_CATEGORIES = {
    "Ride": RideCategory.ROAD,
    "VirtualRide": RideCategory.VIRTUAL,
    "GravelRide": RideCategory.GRAVEL,
    "MountainBikeRide": RideCategory.MOUNTAIN,
    "EBikeRide": RideCategory.EBIKE,
    "EMountainBikeRide": RideCategory.EBIKE,
}


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _seconds(value: Any) -> int | None:
    number = _number(value)
    return int(number) if number is not None else None


class StravaActivityTransformer:
    """Transform Strava activity JSON -> ActivityRecord.

    Strava Fields -> Record Fields:
    - id -> id
    - sport_type / type -> category (commute flag turns road rides into commuting)
    - start_date -> start_time (UTC)
    - moving_time, elapsed_time -> moving_time_sec, elapsed_time_sec
    - distance, total_elevation_gain -> distance_m, elevation_gain_m
    - average_watts, max_watts -> avg_power, max_power
    - average_heartrate, max_heartrate -> avg_hr, max_hr
    - device_watts or average_watts > 0 -> has_power (CALCULATED)
    """

    @staticmethod
    def category(payload: Mapping[str, Any]) -> RideCategory:
        """Ride category of the payload.

        Raises:
            InvalidInputError: If the activity is not a ride
        """
        activity_type = payload.get("sport_type") or payload.get("type")
        category = RIDE_TYPE_CATEGORIES.get(str(activity_type))
        if category is None:
            raise InvalidInputError(
                f"Unsupported activity type: {activity_type}",
                {"supported": sorted(RIDE_TYPE_CATEGORIES)},
            )
        if category is RideCategory.ROAD and payload.get("commute"):
            return RideCategory.COMMUTING
        return category

    @staticmethod
    def transform(payload: Mapping[str, Any], owner_id: str) -> ActivityRecord:
        """Convert a Strava activity payload to an ActivityRecord.

        Args:
            payload: Activity JSON as returned by Strava
            owner_id: Owner the activity belongs to

        Returns:
            ActivityRecord ready for upsert

        Raises:
            InvalidInputError: If id or start date are missing or malformed,
                or the activity is not a ride
        """
        activity_id = payload.get("id")
        if isinstance(activity_id, bool) or not isinstance(activity_id, int) or activity_id <= 0:
            raise InvalidInputError("Activity id must be a positive integer", {"id": activity_id})

        raw_start = payload.get("start_date")
        try:
            start_time = ensure_utc(datetime.fromisoformat(str(raw_start).replace("Z", "+00:00")))
        except ValueError as e:
            raise InvalidInputError(
                "Activity start_date must be an ISO 8601 timestamp", {"start_date": raw_start}
            ) from e

        avg_power = _number(payload.get("average_watts"))
        has_power = bool(payload.get("device_watts")) or (avg_power is not None and avg_power > 0)

        return ActivityRecord(
            id=activity_id,
            owner_id=owner_id,
            start_time=start_time,
            category=StravaActivityTransformer.category(payload),
            moving_time_sec=_seconds(payload.get("moving_time")),
            elapsed_time_sec=_seconds(payload.get("elapsed_time")),
            distance_m=_number(payload.get("distance")),
            elevation_gain_m=_number(payload.get("total_elevation_gain")),
            avg_power=avg_power,
            max_power=_number(payload.get("max_watts")),
            avg_hr=_number(payload.get("average_heartrate")),
            max_hr=_number(payload.get("max_heartrate")),
            has_power=has_power,
        )
