"""Database models."""

from ride_coach_server.models.activity import RideActivity
from ride_coach_server.models.athlete import AthleteProfile
from ride_coach_server.models.base import Base
from ride_coach_server.models.power_curve import PowerCurveEntry
from ride_coach_server.models.stream import ActivityStream
from ride_coach_server.models.training_params import TrainingParams

__all__ = [
    "Base",
    "ActivityStream",
    "AthleteProfile",
    "PowerCurveEntry",
    "RideActivity",
    "TrainingParams",
]
