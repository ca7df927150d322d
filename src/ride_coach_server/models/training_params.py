"""Training parameters data model."""

from sqlalchemy import Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ride_coach_server.models.base import Base, OwnerScopedMixin, TimestampMixin, generate_uuid
from ride_coach_server.schemas.training import TrainingParamsSnapshot

# Columns mirrored one-to-one by TrainingParamsSnapshot fields
SNAPSHOT_FIELDS = (
    "ftp20",
    "ftp_from_3min",
    "ftp_from_cp",
    "ftp_from_strava",
    "ftp_recommended",
    "hr_max",
    "hr_threshold",
    "metrics_window_days",
)


class TrainingParams(Base, OwnerScopedMixin, TimestampMixin):
    """FTP models, heart-rate thresholds and lookback window per athlete.

    Written as a whole row from a merged snapshot.
    """

    __tablename__ = "training_params"
    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_training_params_owner"),
        {"comment": "Per-athlete FTP and heart-rate thresholds"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    # FTP models (watts)
    ftp20: Mapped[int | None] = mapped_column(Integer, comment="95% of top-3 20-min efforts")
    ftp_from_3min: Mapped[int | None] = mapped_column(
        Integer, comment="80% of top-3 3-min efforts"
    )
    ftp_from_cp: Mapped[int | None] = mapped_column(Integer, comment="Two-point critical power")
    ftp_from_strava: Mapped[int | None] = mapped_column(
        Integer, comment="FTP from Strava or manual entry"
    )
    ftp_recommended: Mapped[int | None] = mapped_column(
        Integer, comment="Median of the available FTP models"
    )

    # Heart rate (bpm)
    hr_max: Mapped[int | None] = mapped_column(Integer)
    hr_threshold: Mapped[int | None] = mapped_column(Integer)

    # Lookback horizon
    metrics_window_days: Mapped[float | None] = mapped_column(
        Float, comment="Lookback window in days (default applies when null)"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TrainingParams(owner_id={self.owner_id}, ftp={self.ftp_recommended}, "
            f"hr_max={self.hr_max})>"
        )

    def to_snapshot(self) -> TrainingParamsSnapshot:
        """Immutable view of the row."""
        return TrainingParamsSnapshot(**{name: getattr(self, name) for name in SNAPSHOT_FIELDS})

    def apply_snapshot(self, snapshot: TrainingParamsSnapshot) -> None:
        """Write every field of ``snapshot`` to the row."""
        for name in SNAPSHOT_FIELDS:
            setattr(self, name, getattr(snapshot, name))
