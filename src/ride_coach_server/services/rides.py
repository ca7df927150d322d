"""Ride analysis service: metrics and execution score for one ride."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

import structlog

from ride_coach_server.analytics.ride import analyze_ride
from ride_coach_server.analytics.scoring import score_execution
from ride_coach_server.analytics.volume import compute_volume_summary
from ride_coach_server.core.exceptions import (
    ActivityNotFoundError,
    InvalidInputError,
    validate_owner_id,
)
from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.schemas.analysis import (
    AnalysisStatus,
    RideAnalysis,
    RideMetrics,
    VolumeSummary,
)
from ride_coach_server.schemas.records import ActivityRecord, RideStreams
from ride_coach_server.schemas.training import TrainingParamsSnapshot
from ride_coach_server.services.locks import OwnerLocks

logger = structlog.get_logger()

LATEST = "latest"


@dataclass(frozen=True)
class RideSelector:
    """Which ride to analyze: an explicit id, the latest ride, or the last ride of a day."""

    activity_id: int | None = None
    on_date: date | None = None

    @property
    def is_latest(self) -> bool:
        return self.activity_id is None and self.on_date is None

    @classmethod
    def parse(cls, selector: str | int | None) -> "RideSelector":
        """Parse ``"latest"``, a numeric activity id, or an ISO date (``YYYY-MM-DD``).

        Raises:
            InvalidInputError: If the selector matches none of the forms
        """
        if selector is None:
            return cls()
        if isinstance(selector, bool):
            raise InvalidInputError("Invalid ride selector", {"selector": selector})
        if isinstance(selector, int):
            if selector <= 0:
                raise InvalidInputError("Activity id must be positive", {"selector": selector})
            return cls(activity_id=selector)

        text = selector.strip()
        if not text or text.lower() == LATEST:
            return cls()
        if text.isdigit():
            return cls.parse(int(text))
        try:
            return cls(on_date=date.fromisoformat(text))
        except ValueError as e:
            raise InvalidInputError(
                "Ride selector must be an activity id, 'latest' or a YYYY-MM-DD date",
                {"selector": selector},
            ) from e


class RideAnalysisService:
    """Analyze a single ride against the owner's thresholds and history."""

    def __init__(self, repository: TrainingRepository, locks: OwnerLocks | None = None) -> None:
        """Initialize ride analysis service.

        Args:
            repository: Training data storage
            locks: Per-owner lock registry shared with the other services
        """
        self.repository = repository
        self.locks = locks or OwnerLocks()
        self.logger = logger.bind(service="rides")

    async def resolve_activity(
        self, owner_id: str, selector: RideSelector
    ) -> ActivityRecord | None:
        """Find the selected ride; None when latest/date finds nothing.

        Raises:
            ActivityNotFoundError: If an explicit activity id does not exist
        """
        if selector.activity_id is not None:
            activity = await self.repository.get_activity(owner_id, selector.activity_id)
            if activity is None:
                raise ActivityNotFoundError(owner_id, selector.activity_id)
            return activity
        return await self.repository.get_latest_activity(owner_id, selector.on_date)

    async def ride_metrics(
        self,
        owner_id: str,
        activity: ActivityRecord,
        params: TrainingParamsSnapshot | None,
    ) -> RideMetrics:
        """Load streams and profile for ``activity`` and derive its metrics."""
        streams = RideStreams(
            watts=await self.repository.get_power_stream(owner_id, activity.id),
            heartrate=await self.repository.get_heart_rate_stream(owner_id, activity.id),
        )
        profile = await self.repository.get_athlete_profile(owner_id)
        weight = profile.weight_kg if profile else None
        return analyze_ride(activity, streams, params, weight)

    async def volume_summary(self, owner_id: str, now: datetime) -> VolumeSummary | None:
        """Volume over the owner's lookback window, without locking."""
        window_days = await self.repository.get_metrics_window_days(owner_id)
        activities = await self.repository.get_activities_in_window(
            owner_id, now - timedelta(days=window_days)
        )
        return compute_volume_summary(activities, window_days)

    async def get_volume_summary(
        self, owner_id: str, now: datetime | None = None
    ) -> VolumeSummary | None:
        """Volume over the owner's lookback window; None without rides."""
        owner_id = validate_owner_id(owner_id)
        async with self.locks.lock(owner_id):
            return await self.volume_summary(owner_id, now or datetime.now(UTC))

    async def analyze_ride(
        self,
        owner_id: str,
        selector: str | int | None = LATEST,
        now: datetime | None = None,
    ) -> RideAnalysis:
        """Compute RideMetrics and ExecutionScore for the selected ride.

        Args:
            owner_id: Owner identifier
            selector: Activity id, ``"latest"``, or ISO date
            now: Reference time for the volume window (defaults to now, UTC)

        Returns:
            RideAnalysis; status is insufficient_data when no ride matches

        Raises:
            InvalidInputError: If the owner id or selector is malformed
            ActivityNotFoundError: If an explicit activity id does not exist
        """
        owner_id = validate_owner_id(owner_id)
        parsed = RideSelector.parse(selector)
        now = now or datetime.now(UTC)
        self.logger.info("Analyzing ride", owner_id=owner_id, selector=str(selector))

        async with self.locks.lock(owner_id):
            activity = await self.resolve_activity(owner_id, parsed)
            if activity is None:
                reason = "no_rides" if parsed.is_latest else "no_ride_on_date"
                self.logger.warning("No ride to analyze", owner_id=owner_id, reason=reason)
                return RideAnalysis(
                    owner_id=owner_id, status=AnalysisStatus.INSUFFICIENT_DATA, reason=reason
                )

            params = await self.repository.get_training_params(owner_id)
            metrics = await self.ride_metrics(owner_id, activity, params)
            volume = await self.volume_summary(owner_id, now)

        execution = score_execution(
            metrics, params, volume.avg_duration_sec if volume and volume.avg_duration_sec else None
        )
        self.logger.info(
            "Ride analyzed",
            owner_id=owner_id,
            activity_id=activity.id,
            ride_type=metrics.ride_type.value,
            score=execution.score if execution else None,
        )
        return RideAnalysis(
            owner_id=owner_id,
            status=AnalysisStatus.OK,
            reason=None if execution else "no_duration",
            metrics=metrics,
            execution=execution,
        )
