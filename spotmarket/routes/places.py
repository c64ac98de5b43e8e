"""
places.py — Places search proxy.

Routes:
  GET /api/places/search?q=...  — up to 5 candidate places (60/minute)

Response: {"results": [{name, address, lat, lng, place_id}], "source": "live|demo|fallback"}
A missing q is a 400 {"error": ...}. A blank q returns an empty list
without touching the provider's upstream.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from spotmarket.core.rate_limit import PLACES_SEARCH_LIMIT, limiter
from spotmarket.models.place import PlaceSearchResponse
from spotmarket.services import places

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/places", tags=["places"])


def get_place_search_provider() -> places.PlaceSearchProvider:
    return places.place_search_provider


@router.get("/search", response_model=PlaceSearchResponse)
@limiter.limit(PLACES_SEARCH_LIMIT)
async def search_places(
    request: Request,
    q: Optional[str] = Query(default=None, max_length=200),
    provider: places.PlaceSearchProvider = Depends(get_place_search_provider),
):
    if q is None:
        return JSONResponse(status_code=400, content={"error": "Query parameter is required"})
    return await provider.search(q)
