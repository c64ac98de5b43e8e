"""
MongoDB connection management using Motor (async driver).

A single DatabaseClient instance is shared across all requests via a
module-level singleton. FastAPI's dependency injection (get_db) gives
routes access without importing the singleton directly.

Collections:
  users      — accounts + profile fields
  maps       — map records with their embedded, ordered spot list
  likes      — one row per (map_id, user_id)
  purchases  — completed payments recorded by the webhook

The connection is opened in FastAPI's lifespan (startup) and closed
on shutdown.
"""

import logging
import re

import certifi
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from spotmarket.core.config import settings

logger = logging.getLogger(__name__)


class DatabaseClient:
    """
    Holds the Motor client and selected database.

    Kept as class attributes so tests can swap .client and .db in place.
    """

    client: AsyncIOMotorClient | None = None
    db: AsyncIOMotorDatabase | None = None


# Module-level singleton — all app code references this object
db_client = DatabaseClient()


async def connect_to_mongo() -> None:
    """
    Create the MongoDB connection and validate it with a ping.

    Called once at app startup (via lifespan). If MongoDB is unavailable
    the API still starts; DB-dependent endpoints answer 503 and the
    health check reports "disconnected".
    """
    logger.info("Connecting to MongoDB at %s", _redact_uri(settings.mongo_uri))
    try:
        options = {"serverSelectionTimeoutMS": 5000}
        if settings.mongo_uri.startswith("mongodb+srv://"):
            # Atlas: certifi bundle, the platform store may lack its CA
            options["tlsCAFile"] = certifi.where()
        db_client.client = AsyncIOMotorClient(settings.mongo_uri, **options)
        db_client.db = db_client.client[settings.mongo_db_name]
        await db_client.client.admin.command("ping")
        logger.info("MongoDB connection established (db: %s)", settings.mongo_db_name)
    except Exception as exc:
        logger.warning(
            "MongoDB unavailable at startup: %s. "
            "API running in degraded mode — DB endpoints will fail.",
            exc,
        )
        db_client.client = None
        db_client.db = None


async def close_mongo_connection() -> None:
    """Close the MongoDB connection gracefully on app shutdown."""
    if db_client.client is not None:
        db_client.client.close()
        logger.info("MongoDB connection closed")


def get_db() -> AsyncIOMotorDatabase | None:
    """
    FastAPI dependency — inject the database into route handlers.

    Returns None when MongoDB is unavailable so routes can decide between
    a 503 and an empty read.
    """
    return db_client.db


def _redact_uri(uri: str) -> str:
    """Strip credentials from URI before logging."""
    return re.sub(r"://[^:]+:[^@]+@", "://<redacted>@", uri)
