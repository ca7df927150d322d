"""Strava streams transformer.

Accepts the ``key_by_type=true`` shape (``{"watts": {"data": [...]}}``) as
well as bare arrays (``{"watts": [...]}``).
"""

from collections.abc import Mapping
from typing import Any

from ride_coach_server.core.exceptions import InvalidInputError
from ride_coach_server.schemas.records import RideStreams, StreamChannel


class StravaStreamsTransformer:
    """Transform Strava streams JSON -> RideStreams.

    Channels other than watts and heartrate are ignored; empty channels are
    treated as absent.
    """

    @staticmethod
    def _channel(payload: Mapping[str, Any], channel: StreamChannel) -> list[float | None] | None:
        raw = payload.get(channel.value)
        if raw is None:
            return None
        if isinstance(raw, Mapping):
            raw = raw.get("data")
        if not isinstance(raw, list):
            raise InvalidInputError(
                f"Stream '{channel.value}' must be an array of numbers",
                {"channel": channel.value},
            )

        samples: list[float | None] = []
        for value in raw:
            if value is None:
                samples.append(None)
            elif isinstance(value, (int, float)) and not isinstance(value, bool):
                samples.append(float(value))
            else:
                raise InvalidInputError(
                    f"Stream '{channel.value}' holds a non-numeric sample",
                    {"channel": channel.value},
                )
        return samples or None

    @staticmethod
    def transform(payload: Mapping[str, Any]) -> RideStreams:
        """Convert a streams payload to RideStreams.

        Raises:
            InvalidInputError: If a channel is not an array of numbers
        """
        return RideStreams(
            watts=StravaStreamsTransformer._channel(payload, StreamChannel.WATTS),
            heartrate=StravaStreamsTransformer._channel(payload, StreamChannel.HEARTRATE),
        )
