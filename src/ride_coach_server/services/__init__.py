"""Application services."""

from ride_coach_server.services.coach import CoachService
from ride_coach_server.services.ingest import IngestService
from ride_coach_server.services.locks import OwnerLocks
from ride_coach_server.services.power_curve import PowerCurveService
from ride_coach_server.services.rides import RideAnalysisService, RideSelector
from ride_coach_server.services.thresholds import ThresholdService

__all__ = [
    "CoachService",
    "IngestService",
    "OwnerLocks",
    "PowerCurveService",
    "RideAnalysisService",
    "RideSelector",
    "ThresholdService",
]
