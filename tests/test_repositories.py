"""Storage tests, run against both the in-memory and the SQLite repository."""

from datetime import date, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server.core.exceptions import CorruptDataError
from ride_coach_server.models.stream import ActivityStream
from ride_coach_server.repositories.memory import InMemoryTrainingRepository
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository
from ride_coach_server.schemas.records import (
    ActivityRecord,
    AthleteProfileRecord,
    RideCategory,
    RideStreams,
    StreamChannel,
)
from tests.fixtures import NOW

OWNER = "athlete-1"
OTHER = "athlete-2"


def record(
    activity_id: int,
    days_ago: float,
    owner_id: str = OWNER,
    category: RideCategory = RideCategory.ROAD,
    max_hr: float | None = None,
    moving_sec: int = 3600,
) -> ActivityRecord:
    return ActivityRecord(
        id=activity_id,
        owner_id=owner_id,
        start_time=NOW - timedelta(days=days_ago),
        category=category,
        moving_time_sec=moving_sec,
        max_hr=max_hr,
    )


class TestTrainingParams:
    """Tests for merge-on-write parameter storage."""

    async def test_missing_owner(self, repository) -> None:
        assert await repository.get_training_params(OWNER) is None
        assert await repository.get_metrics_window_days(OWNER) == 60

    async def test_merge_keeps_known_values(self, repository) -> None:
        await repository.save_training_params(OWNER, {"ftp20": 250, "hr_max": 185})
        merged = await repository.save_training_params(OWNER, {"ftp20": None, "hr_max": 183})
        assert (merged.ftp20, merged.hr_max) == (250, 183)

        stored = await repository.get_training_params(OWNER)
        assert stored == merged

    async def test_stored_window(self, repository) -> None:
        await repository.save_training_params(OWNER, {"metrics_window_days": 42})
        assert await repository.get_metrics_window_days(OWNER) == 42

    async def test_owners_are_isolated(self, repository) -> None:
        await repository.save_training_params(OWNER, {"ftp20": 250})
        assert await repository.get_training_params(OTHER) is None


class TestActivities:
    """Tests for ride storage and queries."""

    async def test_upsert_reports_creation(self, repository) -> None:
        assert await repository.upsert_activity(record(1, 2)) is True
        assert await repository.upsert_activity(record(1, 2, moving_sec=4000)) is False

        stored = await repository.get_activity(OWNER, 1)
        assert stored is not None
        assert stored.moving_time_sec == 4000
        assert stored.start_time == NOW - timedelta(days=2)
        assert stored.start_time.tzinfo is not None

    async def test_window_is_ordered_and_filtered(self, repository) -> None:
        for activity in (
            record(3, 1, category=RideCategory.GRAVEL),
            record(1, 90),
            record(2, 10),
            record(4, 5, owner_id=OTHER),
        ):
            await repository.upsert_activity(activity)

        rides = await repository.get_activities_in_window(OWNER, NOW - timedelta(days=60))
        assert [r.id for r in rides] == [2, 3]

        gravel = await repository.get_activities_in_window(
            OWNER, NOW - timedelta(days=60), [RideCategory.GRAVEL]
        )
        assert [r.id for r in gravel] == [3]

        everything = await repository.get_activities_in_window(OWNER, None)
        assert [r.id for r in everything] == [1, 2, 3]

    async def test_latest_and_by_date(self, repository) -> None:
        assert await repository.get_latest_activity(OWNER) is None
        for activity in (record(1, 3), record(2, 1), record(3, 1.1)):
            await repository.upsert_activity(activity)

        latest = await repository.get_latest_activity(OWNER)
        assert latest is not None and latest.id == 2

        day = (NOW - timedelta(days=3)).date()
        on_day = await repository.get_latest_activity(OWNER, day)
        assert on_day is not None and on_day.id == 1
        assert await repository.get_latest_activity(OWNER, date(2020, 1, 1)) is None

    async def test_max_hr_candidates(self, repository) -> None:
        for activity in (
            record(1, 1, max_hr=178),
            record(2, 2, max_hr=185),
            record(3, 3),
            record(4, 4, max_hr=181),
            record(5, 100, max_hr=199),
        ):
            await repository.upsert_activity(activity)

        since = NOW - timedelta(days=60)
        assert await repository.get_max_hr_candidates(OWNER, since, 10) == [185, 181, 178]
        assert await repository.get_max_hr_candidates(OWNER, since, 2) == [185, 181]


class TestStreams:
    """Tests for stream storage."""

    async def test_round_trip_keeps_dropouts(self, repository) -> None:
        await repository.upsert_activity(record(1, 1))
        await repository.replace_streams(
            OWNER, 1, RideStreams(watts=[200.0, None, 210.5], heartrate=[140.0, 141.0, None])
        )
        assert await repository.get_power_stream(OWNER, 1) == [200.0, None, 210.5]
        assert await repository.get_heart_rate_stream(OWNER, 1) == [140.0, 141.0, None]

    async def test_replace_drops_missing_channels(self, repository) -> None:
        await repository.upsert_activity(record(1, 1))
        await repository.replace_streams(OWNER, 1, RideStreams(watts=[1.0], heartrate=[2.0]))
        await repository.replace_streams(OWNER, 1, RideStreams(watts=[3.0]))
        assert await repository.get_power_stream(OWNER, 1) == [3.0]
        assert await repository.get_heart_rate_stream(OWNER, 1) is None

    async def test_missing_stream(self, repository) -> None:
        assert await repository.get_power_stream(OWNER, 404) is None


class TestPowerCurve:
    """Tests for ratchet-only power curve storage."""

    async def test_only_improvements_are_written(self, repository) -> None:
        assert await repository.upsert_power_curve_point(OWNER, 300, 280.0) is True
        assert await repository.upsert_power_curve_point(OWNER, 300, 250.0) is False
        assert await repository.upsert_power_curve_point(OWNER, 300, 280.0) is False
        assert await repository.upsert_power_curve_point(OWNER, 60, 410.0) is True
        assert await repository.upsert_power_curve_point(OWNER, 300, 290.0) is True

        curve = await repository.get_power_curve(OWNER)
        assert [(p.window_sec, p.best_power) for p in curve] == [(60, 410.0), (300, 290.0)]
        assert all(p.updated_at is not None for p in curve)


class TestProfileAndClearing:
    """Tests for athlete profile storage and data removal."""

    async def test_profile_merge(self, repository) -> None:
        assert await repository.get_athlete_profile(OWNER) is None
        await repository.save_athlete_profile(OWNER, AthleteProfileRecord(weight_kg=70.0))
        merged = await repository.save_athlete_profile(
            OWNER, AthleteProfileRecord(weekly_hours_target=8.0)
        )
        assert merged == AthleteProfileRecord(weight_kg=70.0, weekly_hours_target=8.0)
        assert await repository.get_athlete_profile(OWNER) == merged

    async def test_clear_owner_data(self, repository) -> None:
        await repository.upsert_activity(record(1, 1))
        await repository.upsert_activity(record(2, 2))
        await repository.upsert_activity(record(3, 1, owner_id=OTHER))
        await repository.replace_streams(OWNER, 1, RideStreams(watts=[1.0], heartrate=[2.0]))
        await repository.upsert_power_curve_point(OWNER, 60, 400.0)
        await repository.save_athlete_profile(OWNER, AthleteProfileRecord(weight_kg=70.0))
        await repository.save_training_params(OWNER, {"ftp20": 250})

        deleted = await repository.clear_owner_data(OWNER)

        assert deleted == {"streams": 2, "activities": 2, "power_curve": 1, "profile": 1}
        assert await repository.get_latest_activity(OWNER) is None
        assert await repository.get_power_curve(OWNER) == []
        assert await repository.get_athlete_profile(OWNER) is None
        assert (await repository.get_training_params(OWNER)).ftp20 == 250
        assert await repository.get_activity(OTHER, 3) is not None


class TestCorruptStreams:
    """Undecodable stored streams surface as CorruptDataError."""

    async def test_memory(self, memory_repository: InMemoryTrainingRepository) -> None:
        memory_repository.streams[(OWNER, 1, StreamChannel.WATTS)] = "{not json"
        with pytest.raises(CorruptDataError):
            await memory_repository.get_power_stream(OWNER, 1)

    async def test_sql(
        self, sql_repository: SQLAlchemyTrainingRepository, async_session: AsyncSession
    ) -> None:
        async_session.add(
            ActivityStream(
                owner_id=OWNER,
                activity_id=1,
                channel=StreamChannel.HEARTRATE.value,
                sample_count=2,
                samples_json='[140, "high"]',
            )
        )
        await async_session.flush()
        with pytest.raises(CorruptDataError) as exc_info:
            await sql_repository.get_heart_rate_stream(OWNER, 1)
        assert exc_info.value.details == {"owner_id": OWNER, "activity_id": 1}


class TestSessionBoundaries:
    """The SQL repository flushes; commit and rollback belong to the caller."""

    async def test_commit_and_rollback(
        self, sql_repository: SQLAlchemyTrainingRepository
    ) -> None:
        await sql_repository.upsert_activity(record(1, 1))
        await sql_repository.commit()
        await sql_repository.upsert_activity(record(2, 1))
        await sql_repository.rollback()
        assert await sql_repository.get_activity(OWNER, 1) is not None
        assert await sql_repository.get_activity(OWNER, 2) is None
