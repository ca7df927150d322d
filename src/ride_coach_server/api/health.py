"""Health check endpoint."""

import structlog
from litestar import Response, Router, get
from litestar.status_codes import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ride_coach_server import __version__

logger = structlog.get_logger()


async def database_status(session: AsyncSession) -> str:
    """``ok`` when the training store answers a trivial query, else ``unavailable``."""
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", error=str(e))
        return "unavailable"
    return "ok"


@get("/health")
async def health_check(session: AsyncSession) -> Response[dict[str, str]]:
    """Health check endpoint.

    Returns:
        Service status, version and database reachability (503 when degraded)
    """
    database = await database_status(session)
    healthy = database == "ok"
    return Response(
        {
            "status": "ok" if healthy else "degraded",
            "version": __version__,
            "database": database,
        },
        status_code=HTTP_200_OK if healthy else HTTP_503_SERVICE_UNAVAILABLE,
    )


health_router = Router(path="/", route_handlers=[health_check])
