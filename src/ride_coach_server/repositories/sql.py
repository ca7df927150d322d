"""SQLAlchemy-backed training repository."""

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server.core.config import resolve_window_days, settings
from ride_coach_server.models.activity import RideActivity
from ride_coach_server.models.athlete import AthleteProfile
from ride_coach_server.models.power_curve import PowerCurveEntry
from ride_coach_server.models.stream import ActivityStream
from ride_coach_server.models.training_params import TrainingParams
from ride_coach_server.repositories.base import decode_samples, encode_samples, merge_profile
from ride_coach_server.schemas.records import (
    ActivityRecord,
    AthleteProfileRecord,
    PowerCurveRecord,
    RideCategory,
    RideStreams,
    StreamChannel,
    ensure_utc,
)
from ride_coach_server.schemas.training import TrainingParamsSnapshot, merge_training_params

logger = structlog.get_logger()


class SQLAlchemyTrainingRepository:
    """TrainingRepository over an AsyncSession.

    Writes are flushed, not committed; the calling service commits or rolls
    back the whole unit of work.
    """

    def __init__(self, session: AsyncSession, default_window_days: float | None = None) -> None:
        """Initialize repository.

        Args:
            session: Database session
            default_window_days: Lookback used when the owner has none stored
                (defaults to settings.metrics_window_days)
        """
        self.session = session
        self.default_window_days = default_window_days or settings.default_window_days()
        self.logger = logger.bind(repository="sqlalchemy")

    # Training params

    async def _params_row(self, owner_id: str) -> TrainingParams | None:
        stmt = select(TrainingParams).where(TrainingParams.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_training_params(self, owner_id: str) -> TrainingParamsSnapshot | None:
        row = await self._params_row(owner_id)
        return row.to_snapshot() if row else None

    async def save_training_params(
        self,
        owner_id: str,
        patch: TrainingParamsSnapshot | Mapping[str, Any],
    ) -> TrainingParamsSnapshot:
        row = await self._params_row(owner_id)
        merged = merge_training_params(row.to_snapshot() if row else None, patch)
        if row is None:
            row = TrainingParams(owner_id=owner_id)
            self.session.add(row)
        row.apply_snapshot(merged)
        await self.session.flush()
        self.logger.debug("Saved training params", owner_id=owner_id)
        return merged

    async def get_metrics_window_days(self, owner_id: str) -> float:
        params = await self.get_training_params(owner_id)
        stored = params.metrics_window_days if params else None
        return resolve_window_days(stored, self.default_window_days)

    # Activities

    async def get_activities_in_window(
        self,
        owner_id: str,
        since: datetime | None,
        categories: Sequence[RideCategory] | None = None,
    ) -> list[ActivityRecord]:
        stmt = (
            select(RideActivity)
            .where(RideActivity.owner_id == owner_id)
            .order_by(RideActivity.start_time)
        )
        if since is not None:
            stmt = stmt.where(RideActivity.start_time >= ensure_utc(since))
        if categories:
            stmt = stmt.where(RideActivity.category.in_([c.value for c in categories]))
        result = await self.session.execute(stmt)
        return [row.to_record() for row in result.scalars().all()]

    async def _activity_row(self, owner_id: str, activity_id: int) -> RideActivity | None:
        stmt = (
            select(RideActivity)
            .where(RideActivity.owner_id == owner_id)
            .where(RideActivity.activity_id == activity_id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_activity(self, owner_id: str, activity_id: int) -> ActivityRecord | None:
        row = await self._activity_row(owner_id, activity_id)
        return row.to_record() if row else None

    async def get_latest_activity(
        self, owner_id: str, on_date: date | None = None
    ) -> ActivityRecord | None:
        stmt = select(RideActivity).where(RideActivity.owner_id == owner_id)
        if on_date is not None:
            day_start = datetime.combine(on_date, time.min, tzinfo=UTC)
            stmt = stmt.where(RideActivity.start_time >= day_start).where(
                RideActivity.start_time < day_start + timedelta(days=1)
            )
        stmt = stmt.order_by(RideActivity.start_time.desc()).limit(1)
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()
        return row.to_record() if row else None

    async def get_max_hr_candidates(
        self, owner_id: str, since: datetime, limit: int
    ) -> list[float]:
        stmt = (
            select(RideActivity.max_hr)
            .where(RideActivity.owner_id == owner_id)
            .where(RideActivity.start_time >= ensure_utc(since))
            .where(RideActivity.max_hr.isnot(None))
            .order_by(RideActivity.max_hr.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [float(value) for value in result.scalars().all()]

    async def upsert_activity(self, record: ActivityRecord) -> bool:
        row = await self._activity_row(record.owner_id, record.id)
        created = row is None
        if row is None:
            row = RideActivity(owner_id=record.owner_id, activity_id=record.id)
            self.session.add(row)
        row.apply_record(record)
        await self.session.flush()
        return created

    # Streams

    async def _stream(
        self, owner_id: str, activity_id: int, channel: StreamChannel
    ) -> list[float | None] | None:
        stmt = (
            select(ActivityStream.samples_json)
            .where(ActivityStream.owner_id == owner_id)
            .where(ActivityStream.activity_id == activity_id)
            .where(ActivityStream.channel == channel.value)
        )
        result = await self.session.execute(stmt)
        raw = result.scalar_one_or_none()
        if raw is None:
            return None
        return decode_samples(raw, owner_id, activity_id)

    async def get_power_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        return await self._stream(owner_id, activity_id, StreamChannel.WATTS)

    async def get_heart_rate_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        return await self._stream(owner_id, activity_id, StreamChannel.HEARTRATE)

    async def replace_streams(
        self, owner_id: str, activity_id: int, streams: RideStreams
    ) -> None:
        await self.session.execute(
            delete(ActivityStream)
            .where(ActivityStream.owner_id == owner_id)
            .where(ActivityStream.activity_id == activity_id)
        )
        for channel, samples in (
            (StreamChannel.WATTS, streams.watts),
            (StreamChannel.HEARTRATE, streams.heartrate),
        ):
            if samples is None:
                continue
            self.session.add(
                ActivityStream(
                    owner_id=owner_id,
                    activity_id=activity_id,
                    channel=channel.value,
                    sample_count=len(samples),
                    samples_json=encode_samples(samples),
                )
            )
        await self.session.flush()

    # Power curve

    async def get_power_curve(self, owner_id: str) -> list[PowerCurveRecord]:
        stmt = (
            select(PowerCurveEntry)
            .where(PowerCurveEntry.owner_id == owner_id)
            .order_by(PowerCurveEntry.window_sec)
        )
        result = await self.session.execute(stmt)
        return [row.to_record() for row in result.scalars().all()]

    async def upsert_power_curve_point(
        self, owner_id: str, window_sec: int, best_power: float
    ) -> bool:
        stmt = (
            select(PowerCurveEntry)
            .where(PowerCurveEntry.owner_id == owner_id)
            .where(PowerCurveEntry.window_sec == window_sec)
        )
        result = await self.session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is None:
            self.session.add(
                PowerCurveEntry(owner_id=owner_id, window_sec=window_sec, best_power=best_power)
            )
        elif best_power > row.best_power:
            row.best_power = best_power
        else:
            return False

        await self.session.flush()
        return True

    # Athlete profile

    async def _profile_row(self, owner_id: str) -> AthleteProfile | None:
        stmt = select(AthleteProfile).where(AthleteProfile.owner_id == owner_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_athlete_profile(self, owner_id: str) -> AthleteProfileRecord | None:
        row = await self._profile_row(owner_id)
        return row.to_record() if row else None

    async def save_athlete_profile(
        self, owner_id: str, profile: AthleteProfileRecord
    ) -> AthleteProfileRecord:
        row = await self._profile_row(owner_id)
        merged = merge_profile(row.to_record() if row else None, profile)
        if row is None:
            row = AthleteProfile(owner_id=owner_id)
            self.session.add(row)
        row.weight_kg = merged.weight_kg
        row.weekly_hours_target = merged.weekly_hours_target
        await self.session.flush()
        return merged

    # Housekeeping

    async def clear_owner_data(self, owner_id: str) -> dict[str, int]:
        deleted = {}
        for name, model in (
            ("streams", ActivityStream),
            ("activities", RideActivity),
            ("power_curve", PowerCurveEntry),
            ("profile", AthleteProfile),
        ):
            result = await self.session.execute(delete(model).where(model.owner_id == owner_id))
            deleted[name] = result.rowcount or 0  # type: ignore[attr-defined]
        await self.session.flush()
        self.logger.info("Cleared owner data", owner_id=owner_id, deleted=deleted)
        return deleted

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
