"""
pytest configuration and shared fixtures for the SpotMarket API tests.

Tests must not require a live MongoDB, Google Places key, or Stripe key:
  1. connect_to_mongo / close_mongo_connection are patched to no-ops so
     FastAPI's lifespan doesn't try to reach a real database.
  2. get_db is overridden with an in-memory FakeDB for route tests.
  3. PLACES_API_KEY / STRIPE_SECRET_KEY are blanked so the demo providers
     are selected at import time.
"""

import copy
import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ["ENVIRONMENT"] = "test"
os.environ["PLACES_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"

WEBHOOK_SECRET = "whsec_test_secret"


# ── In-memory MongoDB emulator ─────────────────────────────────────────────────

def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, docs: list[dict]):
        self._docs = docs

    def sort(self, key: str, direction: int = 1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def __aiter__(self):
        for doc in self._docs:
            yield copy.deepcopy(doc)


class FakeCollection:
    """Minimal async-compatible replica of the Motor collection API we use."""

    def __init__(self):
        self._docs: dict[str, dict] = {}

    async def find_one(self, query: dict):
        for doc in self._docs.values():
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query: dict | None = None):
        return FakeCursor([d for d in self._docs.values() if _matches(d, query or {})])

    async def insert_one(self, doc: dict):
        oid = ObjectId()
        self._docs[str(oid)] = copy.deepcopy({**doc, "_id": oid})
        result = MagicMock()
        result.inserted_id = oid
        return result

    async def update_one(self, query: dict, update: dict):
        result = MagicMock()
        result.matched_count = 0
        result.modified_count = 0
        for doc in self._docs.values():
            if _matches(doc, query):
                for key, value in update.get("$set", {}).items():
                    doc[key] = copy.deepcopy(value)
                for key, value in update.get("$push", {}).items():
                    doc.setdefault(key, []).append(copy.deepcopy(value))
                for key, value in update.get("$inc", {}).items():
                    doc[key] = doc.get(key, 0) + value
                result.matched_count = 1
                result.modified_count = 1
                break
        return result

    async def delete_one(self, query: dict):
        for key, doc in list(self._docs.items()):
            if _matches(doc, query):
                del self._docs[key]
                break

    async def delete_many(self, query: dict):
        for key, doc in list(self._docs.items()):
            if _matches(doc, query):
                del self._docs[key]

    async def count_documents(self, query: dict) -> int:
        return sum(1 for d in self._docs.values() if _matches(d, query))


class FakeDB:
    """Fake MongoDB database — lazily creates collections."""

    def __init__(self):
        self._cols: dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        if name not in self._cols:
            self._cols[name] = FakeCollection()
        return self._cols[name]


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
async def mock_db():
    """Patch the MongoDB lifecycle for every test and leave the DB disconnected."""
    with (
        patch("spotmarket.core.database.connect_to_mongo", new_callable=AsyncMock),
        patch("spotmarket.core.database.close_mongo_connection", new_callable=AsyncMock),
    ):
        import spotmarket.core.database as db_module

        original_client = db_module.db_client.client
        original_db = db_module.db_client.db

        db_module.db_client.client = None
        db_module.db_client.db = None

        yield

        db_module.db_client.client = original_client
        db_module.db_client.db = original_db


@pytest.fixture(autouse=True)
def reset_rate_limits():
    from spotmarket.core.rate_limit import limiter

    limiter.reset()
    yield


@pytest.fixture()
def fake_db():
    """Fresh in-memory DB for each test."""
    return FakeDB()


@pytest.fixture()
async def client(mock_db):  # noqa: ARG001 — mock_db must run first
    """HTTPX client against the app with no database at all."""
    from spotmarket.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def api_client(fake_db):
    """HTTPX client with get_db overridden to the in-memory FakeDB."""
    from spotmarket.core.database import get_db
    from spotmarket.main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(api_client):
    """Register a user; returns (headers, user_id)."""

    async def _make(email: str = "owner@example.com", password: str = "securepass123"):
        r = await api_client.post("/auth/register", json={"email": email, "password": password})
        assert r.status_code == 201, r.text
        data = r.json()
        return {"Authorization": f"Bearer {data['access_token']}"}, data["user"]["id"]

    return _make


@pytest.fixture()
def make_map(api_client):
    """Create a map through the API; returns the response JSON."""

    async def _make(headers: dict, **fields):
        body = {"title": "Cafe Tour", "description": "Best coffee in town", **fields}
        r = await api_client.post("/api/v1/maps", json=body, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()

    return _make
