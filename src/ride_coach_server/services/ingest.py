"""Ingestion service: store rides and streams, then refresh thresholds."""

from collections.abc import Mapping
from typing import Any

import structlog

from ride_coach_server.core.exceptions import validate_owner_id
from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.schemas.ingest import IngestResult, ProfileResponse, ProfileUpdate
from ride_coach_server.schemas.records import AthleteProfileRecord, StreamChannel
from ride_coach_server.services.locks import OwnerLocks
from ride_coach_server.services.thresholds import ThresholdService
from ride_coach_server.transformers.activity import StravaActivityTransformer
from ride_coach_server.transformers.streams import StravaStreamsTransformer

logger = structlog.get_logger()


class IngestService:
    """Write-side operations: activities, streams, profile and data removal."""

    def __init__(
        self,
        repository: TrainingRepository,
        locks: OwnerLocks | None = None,
        thresholds: ThresholdService | None = None,
    ) -> None:
        """Initialize ingest service.

        Args:
            repository: Training data storage
            locks: Per-owner lock registry shared with the other services
            thresholds: Threshold service used for post-ingest recomputation
        """
        self.repository = repository
        self.locks = locks or OwnerLocks()
        self.thresholds = thresholds or ThresholdService(repository, self.locks)
        self.logger = logger.bind(service="ingest")

    async def ingest_activity(
        self,
        owner_id: str,
        payload: Mapping[str, Any],
        streams: Mapping[str, Any] | None = None,
        recompute: bool = True,
    ) -> IngestResult:
        """Upsert one activity and replace its streams.

        Args:
            owner_id: Owner identifier
            payload: Strava-shaped activity JSON
            streams: Strava-shaped streams JSON; None keeps stored streams
            recompute: Run the power curve / FTP / HR recomputation afterwards

        Returns:
            IngestResult, including the threshold report when recomputed

        Raises:
            InvalidInputError: If the payload is not a valid ride
            Exception: Re-raises storage errors after rollback
        """
        owner_id = validate_owner_id(owner_id)
        record = StravaActivityTransformer.transform(payload, owner_id)
        ride_streams = StravaStreamsTransformer.transform(streams) if streams is not None else None

        async with self.locks.lock(owner_id):
            try:
                created = await self.repository.upsert_activity(record)
                if ride_streams is not None:
                    await self.repository.replace_streams(owner_id, record.id, ride_streams)
                await self.repository.commit()
            except Exception as e:
                await self.repository.rollback()
                self.logger.error(
                    "Activity ingest failed", owner_id=owner_id, activity_id=record.id, error=str(e)
                )
                raise

        stored = []
        if ride_streams is not None:
            if ride_streams.watts is not None:
                stored.append(StreamChannel.WATTS.value)
            if ride_streams.heartrate is not None:
                stored.append(StreamChannel.HEARTRATE.value)

        self.logger.info(
            "Activity ingested",
            owner_id=owner_id,
            activity_id=record.id,
            created=created,
            streams=stored,
        )

        report = await self.thresholds.recompute_thresholds(owner_id) if recompute else None
        return IngestResult(
            owner_id=owner_id,
            activity_id=record.id,
            created=created,
            streams_stored=stored,
            thresholds=report,
        )

    async def update_profile(self, owner_id: str, update: ProfileUpdate) -> ProfileResponse:
        """Merge athlete details; a manual FTP and window go to training params."""
        owner_id = validate_owner_id(owner_id)
        async with self.locks.lock(owner_id):
            try:
                profile = await self.repository.save_athlete_profile(
                    owner_id,
                    AthleteProfileRecord(
                        weight_kg=update.weight_kg,
                        weekly_hours_target=update.weekly_hours_target,
                    ),
                )
                params = await self.repository.save_training_params(
                    owner_id,
                    {
                        "ftp_from_strava": update.ftp,
                        "metrics_window_days": update.metrics_window_days,
                    },
                )
                window_days = await self.repository.get_metrics_window_days(owner_id)
                await self.repository.commit()
            except Exception as e:
                await self.repository.rollback()
                self.logger.error("Profile update failed", owner_id=owner_id, error=str(e))
                raise

        self.logger.info("Profile updated", owner_id=owner_id)
        return ProfileResponse(
            owner_id=owner_id,
            weight_kg=profile.weight_kg,
            weekly_hours_target=profile.weekly_hours_target,
            ftp_from_strava=params.ftp_from_strava,
            metrics_window_days=window_days,
        )

    async def clear_owner_data(self, owner_id: str) -> dict[str, int]:
        """Delete rides, streams, power curve and profile; training params stay."""
        owner_id = validate_owner_id(owner_id)
        async with self.locks.lock(owner_id):
            try:
                deleted = await self.repository.clear_owner_data(owner_id)
                await self.repository.commit()
            except Exception as e:
                await self.repository.rollback()
                self.logger.error("Clearing owner data failed", owner_id=owner_id, error=str(e))
                raise
        return deleted
