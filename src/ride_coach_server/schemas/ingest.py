"""Request and response schemas for ingestion and profile updates."""

from typing import Any

from pydantic import BaseModel, Field

from ride_coach_server.schemas.training import ThresholdReport


class ActivityIngestRequest(BaseModel):
    """A Strava-shaped activity with optional streams."""

    activity: dict[str, Any] = Field(description="Activity JSON (Strava activity shape)")
    streams: dict[str, Any] | None = Field(
        default=None, description="Streams JSON keyed by type (watts, heartrate)"
    )
    recompute: bool = Field(
        default=True, description="Recompute power curve and thresholds after storing"
    )


class IngestResult(BaseModel):
    """Outcome of storing one activity."""

    owner_id: str
    activity_id: int
    created: bool = Field(description="False when an existing activity was overwritten")
    streams_stored: list[str] = Field(default_factory=list)
    thresholds: ThresholdReport | None = None


class ProfileUpdate(BaseModel):
    """Athlete details; omitted or null fields keep their stored value."""

    weight_kg: float | None = Field(default=None, gt=0, le=400)
    weekly_hours_target: float | None = Field(default=None, gt=0, le=60)
    ftp: int | None = Field(default=None, gt=0, le=2000, description="FTP from Strava or manual")
    metrics_window_days: float | None = Field(default=None, gt=0, le=3650)


class ProfileResponse(BaseModel):
    """Stored athlete profile and lookback window."""

    owner_id: str
    weight_kg: float | None = None
    weekly_hours_target: float | None = None
    ftp_from_strava: int | None = None
    metrics_window_days: float


class ClearResult(BaseModel):
    """Rows deleted per kind of data."""

    owner_id: str
    deleted: dict[str, int]
