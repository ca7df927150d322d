"""Threshold and power curve endpoints."""

from typing import Any

from litestar import Router, get, post
from litestar.datastructures import State
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server.api.dependencies import owner_locks
from ride_coach_server.core.auth import api_key_guard
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository
from ride_coach_server.services.power_curve import PowerCurveService
from ride_coach_server.services.thresholds import ThresholdService


@post("/owners/{owner_id:str}/thresholds/recompute", status_code=HTTP_200_OK)
async def recompute_thresholds(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Recompute the power curve, FTP models and heart-rate thresholds.

    Runs power curve -> FTP -> HR in sequence over the owner's lookback
    window. Stages without data keep previously stored values and add a
    note (``no_power_streams``, ``no_ftp_efforts``, ``no_hr_candidates``).
    """
    service = ThresholdService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    report = await service.recompute_thresholds(owner_id)
    return report.model_dump(mode="json", by_alias=True)


@get("/owners/{owner_id:str}/thresholds", status_code=HTTP_200_OK)
async def get_thresholds(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Stored training parameters with labelled FTP models."""
    service = ThresholdService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    report = await service.get_thresholds(owner_id)
    return report.model_dump(mode="json", by_alias=True)


@get("/owners/{owner_id:str}/power-curve", status_code=HTTP_200_OK)
async def get_power_curve(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """All-time best mean power per window duration."""
    service = PowerCurveService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    points = await service.get_power_curve(owner_id)
    return {
        "owner_id": owner_id,
        "points": [p.model_dump(mode="json") for p in points],
    }


thresholds_router = Router(
    path="/",
    route_handlers=[recompute_thresholds, get_thresholds, get_power_curve],
    guards=[api_key_guard],
)
