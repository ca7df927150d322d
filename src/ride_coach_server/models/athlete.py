"""Athlete profile data model."""

from sqlalchemy import Float, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ride_coach_server.models.base import Base, OwnerScopedMixin, TimestampMixin, generate_uuid
from ride_coach_server.schemas.records import AthleteProfileRecord


class AthleteProfile(Base, OwnerScopedMixin, TimestampMixin):
    """Athlete details that refine the analysis (weight, weekly target)."""

    __tablename__ = "athlete_profiles"
    __table_args__ = (
        UniqueConstraint("owner_id", name="uq_athlete_profiles_owner"),
        {"comment": "Athlete weight and weekly training target"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    weight_kg: Mapped[float | None] = mapped_column(Float, comment="Body weight for W/kg")
    weekly_hours_target: Mapped[float | None] = mapped_column(
        Float, comment="Planned riding hours per week"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<AthleteProfile(owner_id={self.owner_id}, weight_kg={self.weight_kg}, "
            f"weekly_hours_target={self.weekly_hours_target})>"
        )

    def to_record(self) -> AthleteProfileRecord:
        """Convert to a plain record."""
        return AthleteProfileRecord(
            weight_kg=self.weight_kg, weekly_hours_target=self.weekly_hours_target
        )
