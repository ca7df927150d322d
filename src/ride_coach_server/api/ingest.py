"""Activity ingestion, athlete profile and data removal endpoints."""

from typing import Any

from litestar import Router, delete, post, put
from litestar.datastructures import State
from litestar.status_codes import HTTP_200_OK, HTTP_201_CREATED
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server.api.dependencies import owner_locks
from ride_coach_server.core.auth import api_key_guard
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository
from ride_coach_server.schemas.ingest import ActivityIngestRequest, ClearResult, ProfileUpdate
from ride_coach_server.services.ingest import IngestService


@post("/owners/{owner_id:str}/activities", status_code=HTTP_201_CREATED)
async def ingest_activity(
    owner_id: str,
    data: ActivityIngestRequest,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Store (or overwrite) one ride and its streams.

    The body carries a Strava-shaped ``activity`` and optional ``streams``
    (``{"watts": {"data": [...]}, "heartrate": {"data": [...]}}``). With
    ``recompute`` (default true) thresholds are refreshed before returning.
    """
    service = IngestService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    result = await service.ingest_activity(
        owner_id, data.activity, data.streams, recompute=data.recompute
    )
    return result.model_dump(mode="json", by_alias=True)


@put("/owners/{owner_id:str}/profile", status_code=HTTP_200_OK)
async def update_profile(
    owner_id: str,
    data: ProfileUpdate,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Set weight, weekly hours target, manual FTP or lookback window."""
    service = IngestService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    profile = await service.update_profile(owner_id, data)
    return profile.model_dump(mode="json")


@delete("/owners/{owner_id:str}/data", status_code=HTTP_200_OK)
async def clear_owner_data(
    owner_id: str,
    session: AsyncSession,
    state: State,
) -> dict[str, Any]:
    """Delete rides, streams, power curve and profile (training params stay)."""
    service = IngestService(SQLAlchemyTrainingRepository(session), owner_locks(state))
    deleted = await service.clear_owner_data(owner_id)
    return ClearResult(owner_id=owner_id.strip(), deleted=deleted).model_dump(mode="json")


ingest_router = Router(
    path="/",
    route_handlers=[ingest_activity, update_profile, clear_owner_data],
    guards=[api_key_guard],
)
