"""Test fixtures for ride-coach-server."""

from tests.fixtures.ride_seed import (
    NOW,
    blocks,
    noisy,
    ride_payload,
    ride_streams,
    seed_threshold_history,
)

__all__ = [
    "NOW",
    "blocks",
    "noisy",
    "ride_payload",
    "ride_streams",
    "seed_threshold_history",
]
