"""Helpers shared by the API routers."""

from litestar import Request, Response
from litestar.datastructures import State

from ride_coach_server.core.exceptions import RideCoachError
from ride_coach_server.services.locks import OwnerLocks

# Application state key holding the process-wide OwnerLocks
LOCKS_STATE_KEY = "owner_locks"


def owner_locks(state: State) -> OwnerLocks:
    """Per-owner locks shared by every request of this process."""
    locks = state.get(LOCKS_STATE_KEY)
    if locks is None:
        locks = OwnerLocks()
        state[LOCKS_STATE_KEY] = locks
    return locks


def ride_coach_error_handler(_: Request, exc: RideCoachError) -> Response:
    """Render domain errors as ``{"error": {"code", "message", "details"}}``."""
    return Response(content=exc.to_dict(), status_code=exc.status_code)
