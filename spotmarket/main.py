"""
SpotMarket API — Application entry point.

Bootstraps FastAPI, wires up middleware, registers route groups,
and manages the MongoDB connection lifecycle.

Extension points:
  - Add new route groups with app.include_router() below
  - Map new service exceptions to HTTP status codes in the handler block
  - Change startup behaviour in the lifespan context manager
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from spotmarket.core import database
from spotmarket.core.config import settings
from spotmarket.core.rate_limit import limiter
from spotmarket.routes.auth import router as auth_router
from spotmarket.routes.health import API_VERSION
from spotmarket.routes.health import router as health_router
from spotmarket.routes.maps import router as maps_router
from spotmarket.routes.payments import router as payments_router
from spotmarket.routes.places import router as places_router
from spotmarket.routes.users import router as users_router
from spotmarket.services.map_store import (
    MapNotFoundError,
    PermissionDeniedError,
    SpotNotFoundError,
)

# ─── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ─── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SpotMarket API (env: %s)", settings.environment)
    # Looked up on the module so tests can patch the lifecycle functions
    await database.connect_to_mongo()
    yield
    logger.info("Shutting down SpotMarket API")
    await database.close_mongo_connection()


# ─── App ───────────────────────────────────────────────────────────────────────
app = FastAPI(
    title="SpotMarket API",
    description="Create, publish, like, and sell curated maps of places.",
    version=API_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)


# ─── Rate limiting ─────────────────────────────────────────────────────────────
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ─── Service errors ────────────────────────────────────────────────────────────
async def _not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _permission_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.info("Permission denied on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


app.add_exception_handler(MapNotFoundError, _not_found_handler)
app.add_exception_handler(SpotNotFoundError, _not_found_handler)
app.add_exception_handler(PermissionDeniedError, _permission_handler)


# ─── Middleware ─────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─── Routes ────────────────────────────────────────────────────────────────────
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(maps_router)
app.include_router(places_router)
app.include_router(payments_router)


@app.get("/", tags=["root"])
async def root():
    """API root — basic metadata."""
    return {
        "name": "SpotMarket API",
        "version": API_VERSION,
        "status": "running",
        "environment": settings.environment,
        "docs": "/docs",
    }
