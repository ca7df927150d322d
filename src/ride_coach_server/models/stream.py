"""Activity stream data model."""

from sqlalchemy import BigInteger, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ride_coach_server.models.base import Base, OwnerScopedMixin, TimestampMixin, generate_uuid


class ActivityStream(Base, OwnerScopedMixin, TimestampMixin):
    """Per-second samples of one channel of one activity.

    Replaced wholesale when the activity is ingested again.
    """

    __tablename__ = "activity_streams"
    __table_args__ = (
        UniqueConstraint(
            "owner_id", "activity_id", "channel", name="uq_activity_streams_owner_activity_channel"
        ),
        {"comment": "1 Hz watts and heart-rate series per activity"},
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    activity_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    channel: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="watts or heartrate"
    )
    sample_count: Mapped[int] = mapped_column(
        Integer, nullable=False, comment="Number of samples (seconds at 1 Hz)"
    )

    # Raw samples stored as JSON array
    samples_json: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="JSON array of numeric samples, null for dropouts",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ActivityStream(owner_id={self.owner_id}, activity_id={self.activity_id}, "
            f"channel={self.channel}, samples={self.sample_count})>"
        )
