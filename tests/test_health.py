"""
Tests for /health, /, and the client config endpoint.

All tests run without a live MongoDB (db is mocked as disconnected in conftest)
and without Places / Stripe keys, so both integrations report demo mode.
"""

from unittest.mock import AsyncMock, MagicMock


async def test_health_returns_200(client):
    """Health endpoint must always return 200 if the API process is alive."""
    response = await client.get("/health")
    assert response.status_code == 200


async def test_health_response_schema(client):
    data = (await client.get("/health")).json()

    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["environment"] == "test"
    assert data["places"] == "demo"
    assert data["payments"] == "demo"


async def test_health_disconnected_when_no_db(client):
    data = (await client.get("/health")).json()
    assert data["database"] == "disconnected"


async def test_health_connected_when_ping_succeeds(client):
    import spotmarket.core.database as db_module

    fake_client = MagicMock()
    fake_client.admin.command = AsyncMock(return_value={"ok": 1})
    db_module.db_client.client = fake_client

    data = (await client.get("/health")).json()
    assert data["database"] == "connected"


async def test_health_survives_ping_failure(client):
    import spotmarket.core.database as db_module

    fake_client = MagicMock()
    fake_client.admin.command = AsyncMock(side_effect=ConnectionError("no route"))
    db_module.db_client.client = fake_client

    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "disconnected"


async def test_client_config_reports_demo_modes(client):
    data = (await client.get("/api/v1/config/client")).json()

    assert data["payments_demo_mode"] is True
    assert data["places_demo_mode"] is True
    assert data["search_debounce_ms"] == 300
    assert data["default_currency"] == "jpy"


async def test_root_endpoint(client):
    """Root / must return API metadata with status=running."""
    response = await client.get("/")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "running"
    assert data["name"] == "SpotMarket API"


async def test_docs_available_in_test_env(client):
    response = await client.get("/docs")
    assert response.status_code == 200


async def test_unknown_route_returns_404(client):
    response = await client.get("/does-not-exist")
    assert response.status_code == 404
