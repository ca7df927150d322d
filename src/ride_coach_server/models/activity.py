"""Ride activity data model."""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ride_coach_server.models.base import Base, OwnerScopedMixin, TimestampMixin, generate_uuid
from ride_coach_server.schemas.records import ActivityRecord, RideCategory, ensure_utc


class RideActivity(Base, OwnerScopedMixin, TimestampMixin):
    """One ingested ride with its aggregate figures.

    Re-ingesting the same (owner_id, activity_id) updates the row in place.
    """

    __tablename__ = "ride_activities"
    __table_args__ = (
        UniqueConstraint("owner_id", "activity_id", name="uq_ride_activities_owner_activity"),
        {"comment": "Rides with duration, distance, power and heart-rate aggregates"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    activity_id: Mapped[int] = mapped_column(
        BigInteger, nullable=False, comment="Activity ID from the source platform"
    )
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True, comment="Ride start (UTC)"
    )
    category: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="commuting, road, gravel, mountain, e-bike, virtual"
    )

    # Duration (seconds)
    moving_time_sec: Mapped[int | None] = mapped_column(Integer)
    elapsed_time_sec: Mapped[int | None] = mapped_column(Integer)

    # Distance and climbing
    distance_m: Mapped[float | None] = mapped_column(Float)
    elevation_gain_m: Mapped[float | None] = mapped_column(Float)

    # Aggregates as reported by the device
    avg_power: Mapped[float | None] = mapped_column(Float)
    max_power: Mapped[float | None] = mapped_column(Float)
    avg_hr: Mapped[float | None] = mapped_column(Float)
    max_hr: Mapped[float | None] = mapped_column(Float, index=True)
    has_power: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Power meter data present"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RideActivity(owner_id={self.owner_id}, activity_id={self.activity_id}, "
            f"start_time={self.start_time}, category={self.category})>"
        )

    def to_record(self) -> ActivityRecord:
        """Convert to the plain record consumed by the analytics."""
        return ActivityRecord(
            id=self.activity_id,
            owner_id=self.owner_id,
            start_time=ensure_utc(self.start_time),
            category=RideCategory(self.category),
            moving_time_sec=self.moving_time_sec,
            elapsed_time_sec=self.elapsed_time_sec,
            distance_m=self.distance_m,
            elevation_gain_m=self.elevation_gain_m,
            avg_power=self.avg_power,
            max_power=self.max_power,
            avg_hr=self.avg_hr,
            max_hr=self.max_hr,
            has_power=self.has_power,
        )

    def apply_record(self, record: ActivityRecord) -> None:
        """Overwrite every ingested field from ``record``."""
        self.start_time = ensure_utc(record.start_time)
        self.category = record.category.value
        self.moving_time_sec = record.moving_time_sec
        self.elapsed_time_sec = record.elapsed_time_sec
        self.distance_m = record.distance_m
        self.elevation_gain_m = record.elevation_gain_m
        self.avg_power = record.avg_power
        self.max_power = record.max_power
        self.avg_hr = record.avg_hr
        self.max_hr = record.max_hr
        self.has_power = record.has_power
