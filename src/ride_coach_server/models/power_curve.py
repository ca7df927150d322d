"""Power curve data model."""

from sqlalchemy import Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ride_coach_server.models.base import Base, OwnerScopedMixin, TimestampMixin, generate_uuid
from ride_coach_server.schemas.records import PowerCurveRecord, ensure_utc


class PowerCurveEntry(Base, OwnerScopedMixin, TimestampMixin):
    """Best mean power ever recorded for one window duration.

    Only ever updated upward.
    """

    __tablename__ = "power_curve_points"
    __table_args__ = (
        UniqueConstraint("owner_id", "window_sec", name="uq_power_curve_owner_window"),
        {"comment": "All-time best mean power per window duration"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    window_sec: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Window duration in seconds"
    )
    best_power: Mapped[float] = mapped_column(
        Float, nullable=False, comment="Best mean power in watts"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PowerCurveEntry(owner_id={self.owner_id}, window_sec={self.window_sec}, "
            f"best_power={self.best_power})>"
        )

    def to_record(self) -> PowerCurveRecord:
        """Convert to a plain record."""
        return PowerCurveRecord(
            window_sec=self.window_sec,
            best_power=self.best_power,
            updated_at=ensure_utc(self.updated_at) if self.updated_at else None,
        )
