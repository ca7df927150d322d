"""Power curve service: ratchet the stored best efforts upward."""

from collections.abc import Iterable

import structlog

from ride_coach_server.analytics.power_curve import POWER_WINDOWS, best_power_curve, ratchet
from ride_coach_server.core.exceptions import InvalidInputError, validate_owner_id
from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.schemas.records import ActivityRecord, PowerStream
from ride_coach_server.schemas.training import PowerCurvePoint
from ride_coach_server.services.locks import OwnerLocks

logger = structlog.get_logger()


class PowerCurveService:
    """Compute best sustained power per window and persist improvements."""

    def __init__(
        self,
        repository: TrainingRepository,
        locks: OwnerLocks | None = None,
        windows: Iterable[int] = POWER_WINDOWS,
    ) -> None:
        """Initialize power curve service.

        Args:
            repository: Training data storage
            locks: Per-owner lock registry shared with the other services
            windows: Window durations in seconds
        """
        self.repository = repository
        self.locks = locks or OwnerLocks()
        self.windows = tuple(windows)
        if any(w <= 0 for w in self.windows):
            raise InvalidInputError(
                "Power curve windows must be positive", {"windows": self.windows}
            )
        self.logger = logger.bind(service="power_curve")

    async def load_power_streams(
        self, owner_id: str, activities: Iterable[ActivityRecord]
    ) -> list[PowerStream]:
        """Fetch the watts stream of every activity that has one."""
        streams = []
        for activity in activities:
            watts = await self.repository.get_power_stream(owner_id, activity.id)
            if watts:
                streams.append(PowerStream(activity_id=activity.id, watts=watts))
        return streams

    async def apply(self, owner_id: str, streams: Iterable[PowerStream]) -> dict[int, float]:
        """Upsert improved points without locking or committing.

        Callers must already hold the owner's lock.

        Returns:
            Window -> power for the points that were written
        """
        candidate = best_power_curve((s.watts for s in streams), self.windows)
        if not candidate:
            self.logger.debug("No power-bearing streams", owner_id=owner_id)
            return {}

        records = await self.repository.get_power_curve(owner_id)
        stored = {p.window_sec: p.best_power for p in records}
        written = {}
        for window_sec, power in sorted(ratchet(candidate, stored).items()):
            if await self.repository.upsert_power_curve_point(owner_id, window_sec, power):
                written[window_sec] = power

        self.logger.debug("Power curve ratcheted", owner_id=owner_id, improved=sorted(written))
        return written

    async def update_power_curve(
        self, owner_id: str, streams: Iterable[PowerStream]
    ) -> dict[int, float]:
        """Ratchet the owner's power curve with ``streams`` and commit.

        Args:
            owner_id: Owner identifier
            streams: Watts series, typically the activities ingested since the
                last computation

        Returns:
            Window -> power for the points that improved

        Raises:
            InvalidInputError: If the owner id is malformed
            Exception: Re-raises storage errors after rollback
        """
        owner_id = validate_owner_id(owner_id)
        streams = list(streams)
        self.logger.info("Updating power curve", owner_id=owner_id, streams=len(streams))

        async with self.locks.lock(owner_id):
            try:
                written = await self.apply(owner_id, streams)
                await self.repository.commit()
            except Exception as e:
                await self.repository.rollback()
                self.logger.error("Power curve update failed", owner_id=owner_id, error=str(e))
                raise

        self.logger.info("Power curve updated", owner_id=owner_id, improved=len(written))
        return written

    async def get_power_curve(self, owner_id: str) -> list[PowerCurvePoint]:
        """Stored power curve ordered by window."""
        owner_id = validate_owner_id(owner_id)
        async with self.locks.lock(owner_id):
            records = await self.repository.get_power_curve(owner_id)
        return [
            PowerCurvePoint(
                window_sec=r.window_sec, best_power=round(r.best_power, 1), updated_at=r.updated_at
            )
            for r in records
        ]
