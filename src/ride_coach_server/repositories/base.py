"""Storage contract consumed by the services.

Any backend honoring ``TrainingRepository`` can sit behind the analytics: the
services only ever see plain records and immutable snapshots.
"""

import json
import math
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any, Protocol

from ride_coach_server.core.exceptions import CorruptDataError
from ride_coach_server.schemas.records import (
    ActivityRecord,
    AthleteProfileRecord,
    PowerCurveRecord,
    RideCategory,
    RideStreams,
)
from ride_coach_server.schemas.training import TrainingParamsSnapshot


class TrainingRepository(Protocol):
    """Per-owner storage for rides, streams, thresholds and the power curve."""

    async def get_training_params(self, owner_id: str) -> TrainingParamsSnapshot | None:
        """Stored parameters, or None when the owner has no row."""
        ...

    async def save_training_params(
        self,
        owner_id: str,
        patch: TrainingParamsSnapshot | Mapping[str, Any],
    ) -> TrainingParamsSnapshot:
        """Merge the non-null fields of ``patch`` into the stored row and write it back."""
        ...

    async def get_metrics_window_days(self, owner_id: str) -> float:
        """Owner's lookback window; always a positive finite number."""
        ...

    async def get_activities_in_window(
        self,
        owner_id: str,
        since: datetime | None,
        categories: Sequence[RideCategory] | None = None,
    ) -> list[ActivityRecord]:
        """Rides started at or after ``since`` (every ride when None), oldest first."""
        ...

    async def get_activity(self, owner_id: str, activity_id: int) -> ActivityRecord | None:
        """One ride by id."""
        ...

    async def get_latest_activity(
        self, owner_id: str, on_date: date | None = None
    ) -> ActivityRecord | None:
        """Most recent ride, optionally restricted to one UTC calendar day."""
        ...

    async def get_max_hr_candidates(
        self, owner_id: str, since: datetime, limit: int
    ) -> list[float]:
        """Recorded max HR of the rides in the window, highest first."""
        ...

    async def get_power_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        """Watts samples of one ride."""
        ...

    async def get_heart_rate_stream(
        self, owner_id: str, activity_id: int
    ) -> list[float | None] | None:
        """Heart-rate samples of one ride."""
        ...

    async def get_power_curve(self, owner_id: str) -> list[PowerCurveRecord]:
        """Stored power curve ordered by window."""
        ...

    async def upsert_power_curve_point(
        self, owner_id: str, window_sec: int, best_power: float
    ) -> bool:
        """Write ``best_power`` only if it beats the stored value; True when written."""
        ...

    async def get_athlete_profile(self, owner_id: str) -> AthleteProfileRecord | None:
        """Athlete weight and weekly target, when set."""
        ...

    async def save_athlete_profile(
        self, owner_id: str, profile: AthleteProfileRecord
    ) -> AthleteProfileRecord:
        """Merge the non-null fields of ``profile`` into the stored profile."""
        ...

    async def upsert_activity(self, record: ActivityRecord) -> bool:
        """Insert or overwrite a ride by (owner, id); True when it was new."""
        ...

    async def replace_streams(
        self, owner_id: str, activity_id: int, streams: RideStreams
    ) -> None:
        """Replace every stored channel of a ride with ``streams``."""
        ...

    async def clear_owner_data(self, owner_id: str) -> dict[str, int]:
        """Delete rides, streams, power curve and profile; keep training params."""
        ...

    async def commit(self) -> None:
        """Make pending writes durable."""
        ...

    async def rollback(self) -> None:
        """Discard pending writes."""
        ...


def encode_samples(samples: Sequence[float | int | None]) -> str:
    """Serialize a stream to a JSON array; non-finite samples become null."""
    cleaned = [
        None if v is None or isinstance(v, bool) or not math.isfinite(v) else v for v in samples
    ]
    return json.dumps(cleaned, separators=(",", ":"))


def decode_samples(raw: str, owner_id: str, activity_id: int) -> list[float | None]:
    """Parse a stored stream.

    Raises:
        CorruptDataError: If the text is not a JSON array of numbers and nulls
    """
    details = {"owner_id": owner_id, "activity_id": activity_id}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise CorruptDataError("Stored stream is not valid JSON", details) from e

    if not isinstance(data, list):
        raise CorruptDataError("Stored stream is not a JSON array", details)

    samples: list[float | None] = []
    for value in data:
        if value is None:
            samples.append(None)
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            samples.append(float(value))
        else:
            raise CorruptDataError("Stored stream holds a non-numeric sample", details)
    return samples


def merge_profile(
    current: AthleteProfileRecord | None, patch: AthleteProfileRecord
) -> AthleteProfileRecord:
    """Apply the non-null fields of ``patch`` over ``current``."""
    current = current or AthleteProfileRecord()
    return AthleteProfileRecord(
        weight_kg=patch.weight_kg if patch.weight_kg is not None else current.weight_kg,
        weekly_hours_target=(
            patch.weekly_hours_target
            if patch.weekly_hours_target is not None
            else current.weekly_hours_target
        ),
    )
