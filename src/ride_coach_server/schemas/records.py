"""Plain records exchanged between the storage layer and the analytics core."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


class RideCategory(str, Enum):
    """Kind of ride, as recorded by the source platform."""

    COMMUTING = "commuting"
    ROAD = "road"
    GRAVEL = "gravel"
    MOUNTAIN = "mountain"
    EBIKE = "e-bike"
    VIRTUAL = "virtual"

    @property
    def is_offroad(self) -> bool:
        """Gravel, mountain and e-bike rides count as off-road."""
        return self in OFFROAD_CATEGORIES


OFFROAD_CATEGORIES = frozenset({RideCategory.GRAVEL, RideCategory.MOUNTAIN, RideCategory.EBIKE})


class StreamChannel(str, Enum):
    """Per-second sample channels stored for an activity."""

    WATTS = "watts"
    HEARTRATE = "heartrate"


@dataclass(frozen=True)
class ActivityRecord:
    """One ingested ride."""

    id: int
    owner_id: str
    start_time: datetime
    category: RideCategory
    moving_time_sec: int | None = None
    elapsed_time_sec: int | None = None
    distance_m: float | None = None
    elevation_gain_m: float | None = None
    avg_power: float | None = None
    max_power: float | None = None
    avg_hr: float | None = None
    max_hr: float | None = None
    has_power: bool = False


@dataclass(frozen=True)
class RideStreams:
    """Equal-rate (1 Hz) sample series for one activity; either may be missing."""

    watts: list[float | None] | None = None
    heartrate: list[float | None] | None = None

    @property
    def sample_count(self) -> int:
        """Length of the longest available channel."""
        return max(len(self.watts or []), len(self.heartrate or []))


@dataclass(frozen=True)
class PowerCurveRecord:
    """Best mean power ever observed for a window."""

    window_sec: int
    best_power: float
    updated_at: datetime | None = None


@dataclass
class PowerStream:
    """A watts series tagged with its activity."""

    activity_id: int
    watts: list[float | None] = field(default_factory=list)


@dataclass(frozen=True)
class AthleteProfileRecord:
    """Optional athlete details; every field may be unknown."""

    weight_kg: float | None = None
    weekly_hours_target: float | None = None
