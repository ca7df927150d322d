"""Strava payload -> record transformers."""

from ride_coach_server.transformers.activity import StravaActivityTransformer
from ride_coach_server.transformers.streams import StravaStreamsTransformer

__all__ = [
    "StravaActivityTransformer",
    "StravaStreamsTransformer",
]
