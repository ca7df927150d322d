"""Training parameter schemas (thresholds, FTP models, power curve)."""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ride_coach_server.core.config import resolve_window_days


class TrainingParamsSnapshot(BaseModel):
    """Immutable view of an owner's training parameters.

    Serialized with the camelCase field names storage implementations must
    honor (``ftpFrom3min``, ``ftpFromCP`` ...). Every field is nullable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ftp20: int | None = Field(default=None, alias="ftp20", description="95% of top 20-min efforts")
    ftp_from_3min: int | None = Field(
        default=None, alias="ftpFrom3min", description="80% of top 3-min efforts"
    )
    ftp_from_cp: int | None = Field(
        default=None, alias="ftpFromCP", description="Two-point critical power"
    )
    ftp_from_strava: int | None = Field(
        default=None, alias="ftpFromStrava", description="FTP set in Strava or entered manually"
    )
    ftp_recommended: int | None = Field(
        default=None,
        alias="ftpRecommended",
        description="Median of FTP models: sorted[n // 2], upper-middle for an even count",
    )
    hr_max: int | None = Field(default=None, alias="hrMax", description="Robust max heart rate")
    hr_threshold: int | None = Field(
        default=None, alias="hrThreshold", description="90% of hrMax"
    )
    metrics_window_days: float | None = Field(
        default=None, alias="metricsWindowDays", description="Lookback horizon (days)"
    )

    @property
    def ftp(self) -> int | None:
        """FTP used for analysis: recommended first, then the individual models."""
        for value in (
            self.ftp_recommended,
            self.ftp_from_strava,
            self.ftp20,
            self.ftp_from_cp,
            self.ftp_from_3min,
        ):
            if value is not None and value > 0:
                return value
        return None

    def window_days(self, fallback: float) -> float:
        """Lookback horizon, substituting ``fallback`` for missing or invalid values."""
        return resolve_window_days(self.metrics_window_days, fallback)

    def merged_with(
        self, patch: "TrainingParamsSnapshot | Mapping[str, Any]"
    ) -> "TrainingParamsSnapshot":
        """Return a new snapshot with the non-null fields of ``patch`` applied."""
        return merge_training_params(self, patch)


def merge_training_params(
    current: TrainingParamsSnapshot | None,
    patch: TrainingParamsSnapshot | Mapping[str, Any],
) -> TrainingParamsSnapshot:
    """Apply only the non-null fields of ``patch`` over ``current``.

    Neither argument is modified. A null in the patch never erases a known
    value.

    Args:
        current: Stored snapshot (None when the owner has no row yet)
        patch: New computation results, as a snapshot or a field mapping
            (snake_case or camelCase keys)

    Returns:
        Merged snapshot
    """
    base = current or TrainingParamsSnapshot()
    if isinstance(patch, TrainingParamsSnapshot):
        updates = patch.model_dump(exclude_none=True)
    else:
        updates = TrainingParamsSnapshot.model_validate(dict(patch)).model_dump(exclude_none=True)
    if not updates:
        return base
    return base.model_copy(update=updates)


class FtpModel(BaseModel):
    """One labelled FTP estimate."""

    key: str = Field(description="Model key (ftp20, ftpFrom3min, ...)")
    value: int = Field(description="Estimated FTP in watts")
    label: str = Field(description="Human-readable model name")


FTP_MODEL_LABELS = {
    "ftp20": "FTP 20min (95%)",
    "ftpFrom3min": "FTP from 3min model",
    "ftpFromCP": "Critical Power model",
    "ftpFromStrava": "FTP from Strava / manual",
    "ftpRecommended": "Recommended FTP (median)",
}


def ftp_models(params: TrainingParamsSnapshot) -> list[FtpModel]:
    """List the FTP models present in ``params`` with their labels."""
    values = params.model_dump(by_alias=True)
    return [
        FtpModel(key=key, value=values[key], label=label)
        for key, label in FTP_MODEL_LABELS.items()
        if values.get(key) is not None
    ]


class PowerCurvePoint(BaseModel):
    """Best mean power for one window duration."""

    window_sec: int = Field(description="Window duration in seconds")
    best_power: float = Field(description="Best mean power in watts")
    updated_at: datetime | None = Field(default=None, description="When the best was recorded")


class ThresholdReport(BaseModel):
    """Outcome of a threshold recomputation."""

    owner_id: str
    params: TrainingParamsSnapshot = Field(description="Stored parameters after the run")
    ftp_models: list[FtpModel] = Field(default_factory=list)
    power_curve: list[PowerCurvePoint] = Field(default_factory=list)
    ftp_updated: bool = Field(default=False, description="Whether any FTP model was computed")
    hr_updated: bool = Field(default=False, description="Whether HR values were computed")
    notes: list[str] = Field(default_factory=list, description="Why stages were skipped")
    computed_at: datetime
