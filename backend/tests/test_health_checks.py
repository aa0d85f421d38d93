"""Tests for startup validation, health checks and index seeding."""

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from app.core.errors import InitializationFailure
from app.core.health_checks import check_completion, check_mongodb, validate_backend_config
from app.core.settings import Settings
from app.db.seed_indexes import ensure_indexes
from app.main import app
from conftest import TEST_APP_ID

client = TestClient(app)


def test_ping():
    response = client.get("/ping")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "pong"}


def test_archetype_catalogue():
    response = client.get("/archetypes")
    assert response.status_code == 200
    assert [a["title"] for a in response.json()] == ["King", "Priest", "Poet", "Jester", "Warrior"]


class TestBackendConfig:
    def test_defaults_are_valid(self):
        validate_backend_config(Settings())

    def test_missing_values_are_reported(self):
        with pytest.raises(InitializationFailure) as exc_info:
            validate_backend_config(Settings(app_id="", jwt_secret_key=""))

        assert exc_info.value.message == "Backend config not available. Check environment setup."
        assert exc_info.value.details["missing"] == ["app_id", "jwt_secret_key"]

    def test_completion_check(self):
        assert check_completion(Settings()) == "ok"
        assert check_completion(Settings(gemini_api_url="")) == "not configured"

    def test_invalid_timezone_is_reported(self):
        with pytest.raises(InitializationFailure) as exc_info:
            validate_backend_config(Settings(challenge_timezone="Mars/Olympus_Mons"))

        assert exc_info.value.details["invalid"] == ["challenge_timezone"]
        validate_backend_config(Settings(challenge_timezone="Europe/Paris"))


@pytest.mark.asyncio
async def test_check_mongodb(fake_db):
    assert await check_mongodb(fake_db) == "ok"

    fake_db.ping_error = ServerSelectionTimeoutError("no server")
    assert (await check_mongodb(fake_db)).startswith("error:")


@pytest.mark.asyncio
async def test_ensure_indexes(fake_db):
    ensured = await ensure_indexes(fake_db, TEST_APP_ID)

    assert ensured == ["owner_day_unique", "day_owner"]
    keys, options = fake_db[f"{TEST_APP_ID}.challenge_logs"].indexes[0]
    assert keys == [("ownerId", 1), ("day", 1)]
    assert options["unique"] is True


def test_health_reports_initialization(monkeypatch):
    async def _database_ok(db=None):
        return "ok"

    monkeypatch.setattr("app.api.routes.health.check_mongodb", _database_ok)

    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"] == {"initialization": "ok", "database": "ok", "completion": "ok"}

    app.state.init_error = InitializationFailure("Backend config not available. Check environment setup.")
    try:
        response = client.get("/health")
    finally:
        app.state.init_error = None

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"]["initialization"].startswith("error: Backend config")
