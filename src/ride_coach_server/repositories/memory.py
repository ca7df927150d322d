"""In-memory training repository.

Dict-backed stand-in for tests and local experiments. Behaves like the SQL
repository, including the merge-on-write and ratchet-only semantics.
"""

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any

from ride_coach_server.core.config import resolve_window_days, settings
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


class InMemoryTrainingRepository:
    """TrainingRepository keeping everything in per-owner dicts.

    Streams are kept JSON-encoded so decoding errors surface exactly as they
    would from the database.
    """

    def __init__(self, default_window_days: float | None = None) -> None:
        self.default_window_days = default_window_days or settings.default_window_days()
        self.params: dict[str, TrainingParamsSnapshot] = {}
        self.activities: dict[str, dict[int, ActivityRecord]] = {}
        self.streams: dict[tuple[str, int, StreamChannel], str] = {}
        self.power_curve: dict[str, dict[int, PowerCurveRecord]] = {}
        self.profiles: dict[str, AthleteProfileRecord] = {}

    async def get_training_params(self, owner_id: str) -> TrainingParamsSnapshot | None:
        return self.params.get(owner_id)

    async def save_training_params(
        self,
        owner_id: str,
        patch: TrainingParamsSnapshot | Mapping[str, Any],
    ) -> TrainingParamsSnapshot:
        merged = merge_training_params(self.params.get(owner_id), patch)
        self.params[owner_id] = merged
        return merged

    async def get_metrics_window_days(self, owner_id: str) -> float:
        params = self.params.get(owner_id)
        stored = params.metrics_window_days if params else None
        return resolve_window_days(stored, self.default_window_days)

    async def get_activities_in_window(
        self,
        owner_id: str,
        since: datetime | None,
        categories: Sequence[RideCategory] | None = None,
    ) -> list[ActivityRecord]:
        start = ensure_utc(since) if since is not None else None
        rides = [
            a
            for a in self.activities.get(owner_id, {}).values()
            if (start is None or ensure_utc(a.start_time) >= start)
            and (not categories or a.category in categories)
        ]
        return sorted(rides, key=lambda a: ensure_utc(a.start_time))

    async def get_activity(self, owner_id: str, activity_id: int) -> ActivityRecord | None:
        return self.activities.get(owner_id, {}).get(activity_id)

    async def get_latest_activity(
        self, owner_id: str, on_date: date | None = None
    ) -> ActivityRecord | None:
        rides = [
            a
            for a in self.activities.get(owner_id, {}).values()
            if on_date is None or ensure_utc(a.start_time).date() == on_date
        ]
        if not rides:
            return None
        return max(rides, key=lambda a: ensure_utc(a.start_time))

    async def get_max_hr_candidates(
        self, owner_id: str, since: datetime, limit: int
    ) -> list[float]:
        since = ensure_utc(since)
        values = [
            float(a.max_hr)
            for a in self.activities.get(owner_id, {}).values()
            if a.max_hr is not None and ensure_utc(a.start_time) >= since
        ]
        return sorted(values, reverse=True)[:limit]

    async def upsert_activity(self, record: ActivityRecord) -> bool:
        owned = self.activities.setdefault(record.owner_id, {})
        created = record.id not in owned
        owned[record.id] = record
        return created

    async def get_power_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        raw = self.streams.get((owner_id, activity_id, StreamChannel.WATTS))
        return decode_samples(raw, owner_id, activity_id) if raw is not None else None

    async def get_heart_rate_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        raw = self.streams.get((owner_id, activity_id, StreamChannel.HEARTRATE))
        return decode_samples(raw, owner_id, activity_id) if raw is not None else None

    async def replace_streams(
        self, owner_id: str, activity_id: int, streams: RideStreams
    ) -> None:
        for channel, samples in (
            (StreamChannel.WATTS, streams.watts),
            (StreamChannel.HEARTRATE, streams.heartrate),
        ):
            key = (owner_id, activity_id, channel)
            self.streams.pop(key, None)
            if samples is not None:
                self.streams[key] = encode_samples(samples)

    async def get_power_curve(self, owner_id: str) -> list[PowerCurveRecord]:
        points = self.power_curve.get(owner_id, {})
        return [points[w] for w in sorted(points)]

    async def upsert_power_curve_point(
        self, owner_id: str, window_sec: int, best_power: float
    ) -> bool:
        points = self.power_curve.setdefault(owner_id, {})
        stored = points.get(window_sec)
        if stored is not None and best_power <= stored.best_power:
            return False
        points[window_sec] = PowerCurveRecord(
            window_sec=window_sec, best_power=best_power, updated_at=datetime.now(UTC)
        )
        return True

    async def get_athlete_profile(self, owner_id: str) -> AthleteProfileRecord | None:
        return self.profiles.get(owner_id)

    async def save_athlete_profile(
        self, owner_id: str, profile: AthleteProfileRecord
    ) -> AthleteProfileRecord:
        merged = merge_profile(self.profiles.get(owner_id), profile)
        self.profiles[owner_id] = merged
        return merged

    async def clear_owner_data(self, owner_id: str) -> dict[str, int]:
        stream_keys = [key for key in self.streams if key[0] == owner_id]
        for key in stream_keys:
            del self.streams[key]
        return {
            "streams": len(stream_keys),
            "activities": len(self.activities.pop(owner_id, {})),
            "power_curve": len(self.power_curve.pop(owner_id, {})),
            "profile": 1 if self.profiles.pop(owner_id, None) is not None else 0,
        }

    async def commit(self) -> None:
        pass

    async def rollback(self) -> None:
        pass
