"""API routes."""

from litestar import Router

from ride_coach_server.api.health import health_router
from ride_coach_server.api.ingest import ingest_router
from ride_coach_server.api.rides import rides_router
from ride_coach_server.api.thresholds import thresholds_router
from ride_coach_server.core.config import settings

# Versioned API routers (owner data endpoints)
_v1_routers = [
    ingest_router,
    thresholds_router,
    rides_router,
]

api_v1_router = Router(path=settings.api_prefix, route_handlers=_v1_routers)

# - health_router: /health - no auth needed, no version prefix
# - api_v1_router: /api/v1/* - owner data endpoints
api_routers = [health_router, api_v1_router]

__all__ = ["api_routers"]
