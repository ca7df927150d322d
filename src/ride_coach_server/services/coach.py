"""Coach service: recommend the next workout."""

from datetime import UTC, datetime

import structlog

from ride_coach_server.analytics.recommender import recommend_next_workout
from ride_coach_server.analytics.volume import (
    LOAD_WINDOW,
    compute_weekly_load,
    resolve_weekly_target,
)
from ride_coach_server.core.config import settings
from ride_coach_server.core.exceptions import validate_owner_id
from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.schemas.analysis import AnalysisStatus, NextWorkout
from ride_coach_server.services.locks import OwnerLocks
from ride_coach_server.services.rides import RideAnalysisService

logger = structlog.get_logger()


class CoachService:
    """Turn the last ride and recent load into a next-session proposal."""

    def __init__(
        self,
        repository: TrainingRepository,
        locks: OwnerLocks | None = None,
        rides: RideAnalysisService | None = None,
        default_weekly_hours_target: float | None = None,
    ) -> None:
        """Initialize coach service.

        Args:
            repository: Training data storage
            locks: Per-owner lock registry shared with the other services
            rides: Ride analysis service (built on the same repository if omitted)
            default_weekly_hours_target: Weekly target for athletes without one
                (defaults to settings.default_weekly_hours_target)
        """
        self.repository = repository
        self.locks = locks or OwnerLocks()
        self.rides = rides or RideAnalysisService(repository, self.locks)
        self.default_weekly_hours_target = (
            default_weekly_hours_target
            if default_weekly_hours_target is not None
            else settings.default_weekly_hours_target
        )
        self.logger = logger.bind(service="coach")

    async def recommend_next_workout(
        self, owner_id: str, now: datetime | None = None
    ) -> NextWorkout:
        """Recommend the next workout for an owner.

        Args:
            owner_id: Owner identifier
            now: Reference time for volume and weekly load (defaults to now, UTC)

        Returns:
            NextWorkout; status is insufficient_data without a ride with a duration

        Raises:
            InvalidInputError: If the owner id is malformed
        """
        owner_id = validate_owner_id(owner_id)
        now = now or datetime.now(UTC)
        self.logger.info("Recommending next workout", owner_id=owner_id)

        async with self.locks.lock(owner_id):
            last = await self.repository.get_latest_activity(owner_id)
            if last is None:
                self.logger.warning("No rides yet", owner_id=owner_id)
                return NextWorkout(
                    owner_id=owner_id, status=AnalysisStatus.INSUFFICIENT_DATA, reason="no_rides"
                )

            params = await self.repository.get_training_params(owner_id)
            metrics = await self.rides.ride_metrics(owner_id, last, params)
            volume = await self.rides.volume_summary(owner_id, now)
            profile = await self.repository.get_athlete_profile(owner_id)
            recent = await self.repository.get_activities_in_window(owner_id, now - LOAD_WINDOW)

        target = resolve_weekly_target(
            profile.weekly_hours_target if profile else None,
            self.default_weekly_hours_target,
            volume,
        )
        load = compute_weekly_load(recent, now, target)
        recommendation = recommend_next_workout(metrics, params, volume, load)

        if recommendation is None:
            self.logger.warning("Last ride has no duration", owner_id=owner_id, activity_id=last.id)
            return NextWorkout(
                owner_id=owner_id,
                status=AnalysisStatus.INSUFFICIENT_DATA,
                reason="no_duration",
                last_ride=metrics,
                weekly_load=load,
            )

        self.logger.info(
            "Workout recommended",
            owner_id=owner_id,
            workout_type=recommendation.workout_type.value,
            rule=recommendation.rule,
        )
        return NextWorkout(
            owner_id=owner_id,
            status=AnalysisStatus.OK,
            last_ride=metrics,
            weekly_load=load,
            recommendation=recommendation,
        )
