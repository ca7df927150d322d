"""Storage implementations of the training repository."""

from ride_coach_server.repositories.base import TrainingRepository
from ride_coach_server.repositories.memory import InMemoryTrainingRepository
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository

__all__ = [
    "InMemoryTrainingRepository",
    "SQLAlchemyTrainingRepository",
    "TrainingRepository",
]
