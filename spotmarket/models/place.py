"""
place.py — Schemas for the places search proxy.
"""

from typing import Literal

from pydantic import BaseModel, Field

# live     — results came from the configured Google Places API
# demo     — no API key configured; static sample data
# fallback — the live provider failed; placeholder data, not authoritative
PlaceSource = Literal["live", "demo", "fallback"]


class PlaceResult(BaseModel):
    name: str
    address: str = ""
    lat: float
    lng: float
    place_id: str


class PlaceSearchResponse(BaseModel):
    """Response body for GET /api/places/search."""
    results: list[PlaceResult] = Field(default_factory=list)
    source: PlaceSource = "demo"
