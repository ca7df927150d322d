"""Threshold recomputation: power curve, then FTP, then heart rate."""

from datetime import UTC, datetime, timedelta

import structlog

from ride_coach_server.analytics.thresholds import estimate_ftp_from_streams, estimate_hr, ftp_patch
from ride_coach_server.core.config import settings
from ride_coach_server.core.exceptions import validate_owner_id
from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.schemas.records import ensure_utc
from ride_coach_server.schemas.training import (
    PowerCurvePoint,
    ThresholdReport,
    TrainingParamsSnapshot,
    ftp_models,
)
from ride_coach_server.services.locks import OwnerLocks
from ride_coach_server.services.power_curve import PowerCurveService

logger = structlog.get_logger()


class ThresholdService:
    """Recompute and report an owner's FTP models and heart-rate thresholds.

    The three stages run strictly in order under one lock acquisition:
    the FTP and HR stages read what earlier stages wrote.
    """

    def __init__(
        self,
        repository: TrainingRepository,
        locks: OwnerLocks | None = None,
        power_curve: PowerCurveService | None = None,
        hr_candidates_limit: int | None = None,
    ) -> None:
        """Initialize threshold service.

        Args:
            repository: Training data storage
            locks: Per-owner lock registry shared with the other services
            power_curve: Power curve service (built on the same repository if omitted)
            hr_candidates_limit: Max rides feeding the HR estimate
                (defaults to settings.hr_max_candidates_limit)
        """
        self.repository = repository
        self.locks = locks or OwnerLocks()
        self.power_curve = power_curve or PowerCurveService(repository, self.locks)
        self.hr_candidates_limit = hr_candidates_limit or settings.hr_max_candidates_limit
        self.logger = logger.bind(service="thresholds")

    async def recompute_thresholds(
        self, owner_id: str, now: datetime | None = None
    ) -> ThresholdReport:
        """Run the power curve, FTP and HR pipelines.

        The power curve ratchets over every stored ride; FTP and HR only use
        rides inside the lookback window.

        Stages that lack data leave stored values untouched and add a note
        to the report.

        Args:
            owner_id: Owner identifier
            now: Reference time for the lookback window (defaults to now, UTC)

        Returns:
            ThresholdReport with the stored parameters after the run

        Raises:
            InvalidInputError: If the owner id is malformed or stored data is corrupt
            Exception: Re-raises storage errors after rollback
        """
        owner_id = validate_owner_id(owner_id)
        now = now or datetime.now(UTC)
        notes: list[str] = []
        self.logger.info("Recomputing thresholds", owner_id=owner_id)

        async with self.locks.lock(owner_id):
            try:
                window_days = await self.repository.get_metrics_window_days(owner_id)
                since = now - timedelta(days=window_days)
                history = await self.repository.get_activities_in_window(owner_id, None)
                in_window = {a.id for a in history if ensure_utc(a.start_time) >= since}
                self.logger.debug(
                    "Loaded activities",
                    owner_id=owner_id,
                    count=len(history),
                    in_window=len(in_window),
                    days=window_days,
                )

                # Stage 1: power curve, over every stored ride
                streams = await self.power_curve.load_power_streams(owner_id, history)
                if not streams:
                    notes.append("no_power_streams")
                    self.logger.warning("No power streams stored", owner_id=owner_id)
                await self.power_curve.apply(owner_id, streams)

                # Stage 2: FTP, over the lookback window
                current = await self.repository.get_training_params(owner_id)
                manual_ftp = current.ftp_from_strava if current else None
                estimate = estimate_ftp_from_streams(
                    (s.watts for s in streams if s.activity_id in in_window), manual_ftp
                )
                if not estimate.has_models:
                    notes.append("no_ftp_efforts")
                    self.logger.warning("No 3-min or 20-min efforts", owner_id=owner_id)
                params = await self.repository.save_training_params(owner_id, ftp_patch(estimate))

                # Stage 3: heart rate
                candidates = await self.repository.get_max_hr_candidates(
                    owner_id, since, self.hr_candidates_limit
                )
                hr = estimate_hr(candidates)
                if hr is None:
                    notes.append("no_hr_candidates")
                    self.logger.warning(
                        "No plausible max heart rate", owner_id=owner_id, candidates=len(candidates)
                    )
                else:
                    params = await self.repository.save_training_params(
                        owner_id, {"hr_max": hr.hr_max, "hr_threshold": hr.hr_threshold}
                    )

                curve = await self.repository.get_power_curve(owner_id)
                await self.repository.commit()
            except Exception as e:
                await self.repository.rollback()
                self.logger.error("Threshold recomputation failed", owner_id=owner_id, error=str(e))
                raise

        self.logger.info(
            "Thresholds recomputed",
            owner_id=owner_id,
            ftp=params.ftp,
            hr_max=params.hr_max,
            notes=notes,
        )
        return ThresholdReport(
            owner_id=owner_id,
            params=params,
            ftp_models=ftp_models(params),
            power_curve=[
                PowerCurvePoint(
                    window_sec=p.window_sec,
                    best_power=round(p.best_power, 1),
                    updated_at=p.updated_at,
                )
                for p in curve
            ],
            ftp_updated=estimate.has_models,
            hr_updated=hr is not None,
            notes=notes,
            computed_at=now,
        )

    async def get_thresholds(self, owner_id: str) -> ThresholdReport:
        """Report the stored parameters without recomputing."""
        owner_id = validate_owner_id(owner_id)
        async with self.locks.lock(owner_id):
            params = await self.repository.get_training_params(owner_id)
            window_days = await self.repository.get_metrics_window_days(owner_id)
        params = params or TrainingParamsSnapshot()
        if params.metrics_window_days is None:
            params = params.merged_with({"metrics_window_days": window_days})
        notes = [] if params.ftp or params.hr_max else ["not_computed"]
        return ThresholdReport(
            owner_id=owner_id,
            params=params,
            ftp_models=ftp_models(params),
            power_curve=await self.power_curve.get_power_curve(owner_id),
            notes=notes,
            computed_at=datetime.now(UTC),
        )
