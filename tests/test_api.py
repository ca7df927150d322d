"""API endpoint tests."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_201_CREATED,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
)
from litestar.testing import AsyncTestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ride_coach_server import __version__
from ride_coach_server.api.health import database_status
from ride_coach_server.app import create_app
from ride_coach_server.core.config import settings
from tests.fixtures import blocks, ride_payload, ride_streams

OWNER = "athlete-1"
BASE = f"/api/v1/owners/{OWNER}"


@pytest.fixture
async def client(async_engine: AsyncEngine) -> AsyncIterator[AsyncTestClient]:
    """Create test client backed by the in-memory SQLite engine."""
    async with AsyncTestClient(app=create_app(async_engine)) as client:
        yield client


def recent_ride(activity_id: int = 101, hours_ago: float = 26) -> dict:
    start = datetime.now(UTC) - timedelta(hours=hours_ago)
    return {
        "activity": ride_payload(activity_id, start, 1300, max_hr=181, avg_watts=249.2),
        "streams": ride_streams(
            watts=blocks((100, 120.0), (1200, 260.0)),
            heartrate=blocks((100, 120.0), (1200, 165.0)),
        ),
    }


async def test_health_check(client: AsyncTestClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/health")

    assert response.status_code == HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["database"] == "ok"


class UnreachableSession:
    """Session stand-in whose queries fail like a lost connection."""

    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


async def test_database_status_unavailable() -> None:
    assert await database_status(UnreachableSession()) == "unavailable"


async def test_database_status_ok(async_session: AsyncSession) -> None:
    assert await database_status(async_session) == "ok"


async def test_ingest_then_read_everything(client: AsyncTestClient) -> None:
    """Ingest a ride and read every derived view."""
    response = await client.post(f"{BASE}/activities", json=recent_ride())
    assert response.status_code == HTTP_201_CREATED
    data = response.json()
    assert data["created"] is True
    assert data["streams_stored"] == ["watts", "heartrate"]
    assert data["thresholds"]["params"]["ftp20"] == 247
    assert data["thresholds"]["params"]["ftpRecommended"] == 247
    assert data["thresholds"]["params"]["hrMax"] == 181

    response = await client.get(f"{BASE}/thresholds")
    assert response.status_code == HTTP_200_OK
    assert response.json()["params"]["hrThreshold"] == 163

    response = await client.get(f"{BASE}/power-curve")
    assert response.status_code == HTTP_200_OK
    points = response.json()["points"]
    assert [p["window_sec"] for p in points] == [60, 180, 300, 480, 1200]
    assert points[-1]["best_power"] == 260.0

    response = await client.get(f"{BASE}/rides/latest/analysis")
    assert response.status_code == HTTP_200_OK
    analysis = response.json()
    assert analysis["status"] == "ok"
    assert analysis["metrics"]["activity_id"] == 101
    assert analysis["metrics"]["ftp_used"] == 247
    assert analysis["execution"]["score"] <= 100

    response = await client.get(f"{BASE}/volume")
    assert response.status_code == HTTP_200_OK
    assert response.json()["volume"]["rides_count"] == 1

    response = await client.get(f"{BASE}/recommendation")
    assert response.status_code == HTTP_200_OK
    recommendation = response.json()
    assert recommendation["status"] == "ok"
    assert recommendation["recommendation"]["workout_type"] == "recovery"


async def test_reingest_overwrites(client: AsyncTestClient) -> None:
    body = recent_ride()
    await client.post(f"{BASE}/activities", json={**body, "recompute": False})
    response = await client.post(f"{BASE}/activities", json={**body, "recompute": False})
    assert response.status_code == HTTP_201_CREATED
    assert response.json()["created"] is False
    assert response.json()["thresholds"] is None


async def test_empty_owner_is_not_an_error(client: AsyncTestClient) -> None:
    response = await client.get(f"{BASE}/rides/latest/analysis")
    assert response.status_code == HTTP_200_OK
    assert response.json()["reason"] == "no_rides"

    response = await client.get(f"{BASE}/volume")
    assert response.json() == {
        "owner_id": OWNER,
        "status": "insufficient_data",
        "reason": "no_rides",
        "volume": None,
    }

    response = await client.get(f"{BASE}/thresholds")
    assert response.json()["notes"] == ["not_computed"]


async def test_unknown_activity_returns_404(client: AsyncTestClient) -> None:
    response = await client.get(f"{BASE}/rides/999/analysis")
    assert response.status_code == HTTP_404_NOT_FOUND
    assert response.json() == {
        "error": {
            "code": "ACTIVITY_NOT_FOUND",
            "message": "Activity 999 not found",
            "details": {"owner_id": OWNER, "activity_id": 999},
        }
    }


async def test_bad_selector_returns_400(client: AsyncTestClient) -> None:
    response = await client.get(f"{BASE}/rides/last-tuesday/analysis")
    assert response.status_code == HTTP_400_BAD_REQUEST
    assert response.json()["error"]["code"] == "INVALID_INPUT"


async def test_non_ride_activity_rejected(client: AsyncTestClient) -> None:
    body = recent_ride()
    body["activity"]["type"] = "Run"
    response = await client.post(f"{BASE}/activities", json=body)
    assert response.status_code == HTTP_400_BAD_REQUEST
    assert response.json()["error"]["code"] == "INVALID_INPUT"


async def test_profile_update(client: AsyncTestClient) -> None:
    response = await client.put(
        f"{BASE}/profile", json={"weight_kg": 72.5, "ftp": 255, "metrics_window_days": 90}
    )
    assert response.status_code == HTTP_200_OK
    assert response.json() == {
        "owner_id": OWNER,
        "weight_kg": 72.5,
        "weekly_hours_target": None,
        "ftp_from_strava": 255,
        "metrics_window_days": 90.0,
    }

    response = await client.put(f"{BASE}/profile", json={"weight_kg": -1})
    assert response.status_code == HTTP_400_BAD_REQUEST


async def test_clear_owner_data(client: AsyncTestClient) -> None:
    await client.post(f"{BASE}/activities", json=recent_ride())

    response = await client.delete(f"{BASE}/data")

    assert response.status_code == HTTP_200_OK
    assert response.json()["deleted"]["activities"] == 1
    assert response.json()["deleted"]["streams"] == 2

    response = await client.get(f"{BASE}/rides/latest/analysis")
    assert response.json()["reason"] == "no_rides"


async def test_openapi_schema(client: AsyncTestClient) -> None:
    response = await client.get("/schema/openapi.json")
    assert response.status_code == HTTP_200_OK
    paths = response.json()["paths"]
    assert f"/api/v1/owners/{{owner_id}}/thresholds/recompute" in paths


class TestApiKeyGuard:
    """Tests for the shared API key."""

    @pytest.fixture(autouse=True)
    def api_key(self, monkeypatch: pytest.MonkeyPatch) -> str:
        monkeypatch.setattr(settings, "api_key", "test-key")
        return "test-key"

    async def test_missing_key(self, client: AsyncTestClient) -> None:
        response = await client.get(f"{BASE}/thresholds")
        assert response.status_code == HTTP_401_UNAUTHORIZED

    async def test_wrong_key(self, client: AsyncTestClient) -> None:
        response = await client.get(f"{BASE}/thresholds", headers={"X-API-Key": "nope"})
        assert response.status_code == HTTP_401_UNAUTHORIZED

    async def test_header_key(self, client: AsyncTestClient, api_key: str) -> None:
        response = await client.get(f"{BASE}/thresholds", headers={"X-API-Key": api_key})
        assert response.status_code == HTTP_200_OK

    async def test_bearer_key(self, client: AsyncTestClient, api_key: str) -> None:
        response = await client.get(
            f"{BASE}/thresholds", headers={"Authorization": f"Bearer {api_key}"}
        )
        assert response.status_code == HTTP_200_OK

    async def test_health_stays_open(self, client: AsyncTestClient) -> None:
        response = await client.get("/health")
        assert response.status_code == HTTP_200_OK
