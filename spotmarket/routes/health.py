"""
Health check and client configuration endpoints.

  GET /health                 — liveness + DB connectivity
  GET /api/v1/config/client   — public keys and demo flags for the web client

The API is healthy (HTTP 200) even when the database is disconnected, so
callers can tell "API down" from "API up but DB unreachable".
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel

from spotmarket.core import database as db_module
from spotmarket.core.config import settings
from spotmarket.services import payments, places

logger = logging.getLogger(__name__)
router = APIRouter()

API_VERSION = "0.1.0"


class HealthResponse(BaseModel):
    status: str  # Always "ok" if the API process is alive
    version: str
    database: str  # "connected" | "disconnected"
    environment: str
    places: str  # "live" | "demo"
    payments: str  # "live" | "demo"


class ClientConfig(BaseModel):
    mapbox_access_token: str
    map_demo_mode: bool
    stripe_publishable_key: str
    payments_demo_mode: bool
    places_demo_mode: bool
    search_debounce_ms: int
    default_currency: str


@router.get("/health", response_model=HealthResponse, summary="API health check", tags=["health"])
async def health_check() -> HealthResponse:
    db_status = "disconnected"
    try:
        # Access via module reference so tests can patch db_module.db_client
        if db_module.db_client.client is not None:
            await db_module.db_client.client.admin.command("ping")
            db_status = "connected"
    except Exception as exc:
        logger.warning("DB ping failed: %s", exc)

    return HealthResponse(
        status="ok",
        version=API_VERSION,
        database=db_status,
        environment=settings.environment,
        places=places.place_search_provider.source,
        payments="demo" if payments.payment_gateway.demo else "live",
    )


@router.get("/api/v1/config/client", response_model=ClientConfig, tags=["config"])
async def client_config() -> ClientConfig:
    return ClientConfig(
        mapbox_access_token=settings.mapbox_access_token,
        map_demo_mode=not settings.mapbox_access_token,
        stripe_publishable_key=settings.stripe_publishable_key,
        payments_demo_mode=payments.payment_gateway.demo,
        places_demo_mode=places.place_search_provider.source != "live",
        search_debounce_ms=settings.search_debounce_ms,
        default_currency=settings.default_currency,
    )
