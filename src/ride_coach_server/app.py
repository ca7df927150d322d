"""Litestar application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from advanced_alchemy.config.asyncio import AsyncSessionConfig
from litestar import Litestar
from litestar.contrib.sqlalchemy.plugins import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from litestar.datastructures import State
from litestar.openapi import OpenAPIConfig
from sqlalchemy.ext.asyncio import AsyncEngine

from ride_coach_server import __version__
from ride_coach_server.api import api_routers
from ride_coach_server.api.dependencies import LOCKS_STATE_KEY, ride_coach_error_handler
from ride_coach_server.core import database
from ride_coach_server.core.config import settings
from ride_coach_server.core.exceptions import RideCoachError
from ride_coach_server.core.logging import configure_logging
from ride_coach_server.services.locks import OwnerLocks

configure_logging()

logger = structlog.get_logger()

ENGINE_STATE_KEY = "engine"


@asynccontextmanager
async def lifespan(app: Litestar) -> AsyncIterator[None]:
    """Application lifespan manager.

    Handles startup and shutdown tasks:
    - Verify the database schema on startup
    - Close database connections on shutdown
    """
    engine: AsyncEngine = app.state[ENGINE_STATE_KEY]
    logger.info(
        "Starting ride-coach-server",
        version=__version__,
        metrics_window_days=settings.default_window_days(),
        auth_enabled=bool(settings.api_key),
    )

    await database.init_database(engine)

    yield

    await database.close_database(engine)
    logger.info("Shutdown complete")


def create_app(engine: AsyncEngine | None = None) -> Litestar:
    """Create Litestar application.

    Args:
        engine: Database engine (defaults to the engine built from settings)

    Returns:
        Configured Litestar app instance
    """
    engine = engine or database.engine

    return Litestar(
        route_handlers=api_routers,
        lifespan=[lifespan],
        state=State({ENGINE_STATE_KEY: engine, LOCKS_STATE_KEY: OwnerLocks()}),
        openapi_config=OpenAPIConfig(
            title="ride-coach-server API",
            version=__version__,
            description="Cycling training analytics: thresholds, ride analysis, next workout",
        ),
        plugins=[
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    engine_instance=engine,
                    session_dependency_key="session",
                    session_config=AsyncSessionConfig(expire_on_commit=False),
                ),
            ),
        ],
        exception_handlers={RideCoachError: ride_coach_error_handler},
        debug=settings.log_level == "DEBUG",
    )


# Application instance
app = create_app()
