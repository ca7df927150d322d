"""Ride analysis, volume and recommendation endpoints."""

from typing import Any

from litestar import Router, get
from litestar.datastructures import State
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server.api.dependencies import owner_locks
from ride_coach_server.core.auth import api_key_guard
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository
from ride_coach_server.schemas.analysis import AnalysisStatus
from ride_coach_server.services.coach import CoachService
from ride_coach_server.services.rides import RideAnalysisService


@get("/owners/{owner_id:str}/rides/{selector:str}/analysis", status_code=HTTP_200_OK)
async def analyze_ride(
    owner_id: str,
    selector: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Metrics and execution score for one ride.

    ``selector`` is an activity id, ``latest``, or a ``YYYY-MM-DD`` date
    (last ride of that UTC day). Missing rides yield
    ``status: insufficient_data`` rather than an error, except for an
    explicit id, which returns 404.
    """
    service = RideAnalysisService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    analysis = await service.analyze_ride(owner_id, selector)
    return analysis.model_dump(mode="json")


@get("/owners/{owner_id:str}/volume", status_code=HTTP_200_OK)
async def get_volume(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Riding volume over the owner's lookback window."""
    service = RideAnalysisService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    summary = await service.get_volume_summary(owner_id)
    if summary is None:
        return {
            "owner_id": owner_id,
            "status": AnalysisStatus.INSUFFICIENT_DATA.value,
            "reason": "no_rides",
            "volume": None,
        }
    return {
        "owner_id": owner_id,
        "status": AnalysisStatus.OK.value,
        "reason": None,
        "volume": summary.model_dump(mode="json"),
    }


@get("/owners/{owner_id:str}/recommendation", status_code=HTTP_200_OK)
async def get_recommendation(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Recommended type, duration and targets for the next workout."""
    service = CoachService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    result = await service.recommend_next_workout(owner_id)
    return result.model_dump(mode="json")


rides_router = Router(
    path="/",
    route_handlers=[analyze_ride, get_volume, get_recommendation],
    guards=[api_key_guard],
)
