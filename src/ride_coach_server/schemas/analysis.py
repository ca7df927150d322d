"""Pydantic schemas for ride analysis, scoring, volume and recommendations."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ride_coach_server.schemas.records import RideCategory


class AnalysisStatus(str, Enum):
    """Whether a result could be computed."""

    OK = "ok"
    INSUFFICIENT_DATA = "insufficient_data"


class RideType(str, Enum):
    """Classification of a completed ride by its purpose."""

    RECOVERY = "recovery"
    ENDURANCE = "endurance"
    ENDURANCE_LONG = "endurance_long"
    TEMPO = "tempo"
    SWEETSPOT_OR_THRESHOLD = "sweetspot_or_threshold"
    INTENSITY = "intensity"
    UNKNOWN = "unknown"


class ZoneBasis(str, Enum):
    """Which signal zone times were derived from."""

    POWER = "power"
    HEART_RATE = "heart_rate"
    MIXED = "mixed"


class DecouplingLevel(str, Enum):
    """Coarse interpretation of aerobic drift."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class ZoneTimes(BaseModel):
    """Seconds spent in each of the five intensity zones."""

    z1: int = 0
    z2: int = 0
    z3: int = 0
    z4: int = 0
    z5: int = 0

    @property
    def total(self) -> int:
        """Total classified seconds."""
        return self.z1 + self.z2 + self.z3 + self.z4 + self.z5

    def seconds(self, zone: int) -> int:
        """Seconds in zone ``zone`` (1-5)."""
        return getattr(self, f"z{zone}")

    def fraction(self, zone: int) -> float:
        """Share of classified time spent in ``zone`` (0 when nothing was classified)."""
        total = self.total
        return self.seconds(zone) / total if total else 0.0


class SubEffort(BaseModel):
    """Best sustained effort within a single ride."""

    window_sec: int = Field(description="Window duration in seconds")
    avg_power: float = Field(description="Mean power over the window (W)")
    pct_ftp: float | None = Field(default=None, description="Mean power as % of FTP")
    start_offset_sec: int = Field(description="Window start, seconds from ride start")
    avg_hr: float | None = Field(default=None, description="Mean heart rate over the window")


class RideMetrics(BaseModel):
    """Metrics derived from one ride."""

    activity_id: int
    start_time: datetime
    category: RideCategory
    duration_sec: int | None = Field(description="Moving time, or stream length as fallback")
    distance_km: float | None = None
    elevation_gain_m: float | None = None
    avg_power: float | None = None
    avg_hr: float | None = None
    ftp_used: int | None = None
    hr_threshold_used: int | None = None
    intensity_factor: float | None = Field(default=None, description="avg power / FTP")
    zones: ZoneTimes = Field(default_factory=ZoneTimes)
    zone_basis: ZoneBasis | None = None
    decoupling_pct: float | None = Field(
        default=None, description="HR:power drift between halves, percent"
    )
    decoupling_level: DecouplingLevel | None = None
    ride_type: RideType = RideType.UNKNOWN
    intensity_note: str | None = None
    best_efforts: list[SubEffort] = Field(default_factory=list)
    avg_power_wkg: float | None = Field(default=None, description="Average power per kg")
    ftp_wkg: float | None = Field(default=None, description="FTP per kg")


class ExecutionScore(BaseModel):
    """0-100 adherence score with the sub-scores behind it."""

    score: int = Field(ge=0, le=100)
    duration: int = Field(ge=0, le=100)
    intensity: int = Field(ge=0, le=100)
    decoupling: int = Field(ge=0, le=100)
    zone_purity: int = Field(ge=0, le=100)
    target_if_range: tuple[float, float] = Field(description="Intensity-factor band used")


class RideAnalysis(BaseModel):
    """Response of a ride analysis request."""

    owner_id: str
    status: AnalysisStatus
    reason: str | None = None
    metrics: RideMetrics | None = None
    execution: ExecutionScore | None = None


class VolumeSummary(BaseModel):
    """Riding volume over the lookback window."""

    window_days: float
    rides_count: int
    total_moving_time_sec: int
    total_distance_km: float
    total_elevation_gain_m: int
    avg_duration_sec: int
    min_duration_sec: int
    max_duration_sec: int
    offroad_pct: int | None = Field(description="Share of gravel/MTB/e-bike rides, percent")
    weeks_count: int
    weekly_hours_avg: float
    weekly_rides_avg: float


class WeeklyLoad(BaseModel):
    """Recent riding hours against a weekly target."""

    hours_last_7d: float
    target_hours: float | None = None

    @property
    def load_ratio(self) -> float | None:
        """Recent hours divided by target (None without a positive target)."""
        if not self.target_hours or self.target_hours <= 0:
            return None
        return self.hours_last_7d / self.target_hours


class TargetRange(BaseModel):
    """Inclusive numeric target band."""

    low: int
    high: int


class WorkoutRecommendation(BaseModel):
    """Proposed next session."""

    workout_type: RideType
    duration_min_minutes: int
    duration_max_minutes: int
    power_target_watts: TargetRange | None = None
    hr_target_bpm: TargetRange | None = None
    rule: str = Field(description="Which decision rule fired")
    rationale: str


class NextWorkout(BaseModel):
    """Response of a recommendation request."""

    owner_id: str
    status: AnalysisStatus
    reason: str | None = None
    last_ride: RideMetrics | None = None
    weekly_load: WeeklyLoad | None = None
    recommendation: WorkoutRecommendation | None = None
