"""
Place search providers.

Two implementations of the same interface, chosen once at startup:

  LivePlaceSearchProvider — Google Places API (New) Text Search over httpx.
                            Used when PLACES_API_KEY is set.
  DemoPlaceSearchProvider — static Tokyo sample data picked by keyword.
                            Used when no key is configured.

Search never hard-fails for the caller:
  - empty / whitespace query → [] without any network call
  - live provider error (HTTP status, timeout, bad payload) → placeholder
    results jittered around Tokyo landmarks, source="fallback",
    place_id prefixed "fallback-"

To swap to a different search backend (Mapbox, Nominatim):
  1. Subclass PlaceSearchProvider and implement _search()
  2. Return it from build_place_search_provider()
"""

import logging
import random
import time
from typing import Any, Optional

import httpx

from spotmarket.core.config import Settings, settings
from spotmarket.models.place import PlaceResult, PlaceSearchResponse

logger = logging.getLogger(__name__)

GOOGLE_PLACES_URL = "https://places.googleapis.com/v1/places:searchText"
_FIELD_MASK = "places.id,places.displayName,places.formattedAddress,places.location"

# (keywords, results) — first keyword group found in the lowercased query wins
_DEMO_SETS: list[tuple[tuple[str, ...], list[dict[str, Any]]]] = [
    (("cafe", "coffee", "カフェ"), [
        {"name": "Starbucks Shibuya", "address": "1-12-1 Dogenzaka, Shibuya, Tokyo", "lat": 35.6580, "lng": 139.7016, "place_id": "cafe-1"},
        {"name": "Tully's Coffee Shinjuku", "address": "3-14-1 Shinjuku, Shinjuku, Tokyo", "lat": 35.6896, "lng": 139.7006, "place_id": "cafe-2"},
        {"name": "Doutor Coffee Tokyo Station", "address": "1-9-1 Marunouchi, Chiyoda, Tokyo", "lat": 35.6812, "lng": 139.7671, "place_id": "cafe-3"},
    ]),
    (("restaurant", "food", "レストラン"), [
        {"name": "Italian Restaurant Ginza", "address": "5-4-1 Ginza, Chuo, Tokyo", "lat": 35.6719, "lng": 139.7658, "place_id": "restaurant-1"},
        {"name": "French Restaurant Omotesando", "address": "3-5-1 Minami-Aoyama, Minato, Tokyo", "lat": 35.6659, "lng": 139.7131, "place_id": "restaurant-2"},
        {"name": "Washoku Roppongi", "address": "6-1-1 Roppongi, Minato, Tokyo", "lat": 35.6627, "lng": 139.7314, "place_id": "restaurant-3"},
    ]),
    (("park", "garden", "公園"), [
        {"name": "Ueno Park", "address": "5-20 Uenokoen, Taito, Tokyo", "lat": 35.7148, "lng": 139.7744, "place_id": "park-1"},
        {"name": "Yoyogi Park", "address": "2-1 Yoyogikamizonocho, Shibuya, Tokyo", "lat": 35.6732, "lng": 139.6950, "place_id": "park-2"},
        {"name": "Shinjuku Gyoen", "address": "11 Naitomachi, Shinjuku, Tokyo", "lat": 35.6851, "lng": 139.7100, "place_id": "park-3"},
    ]),
]

# (suffix, address, lat, lng) anchors for station queries and generic / fallback results
_ANCHORS = [
    ("Station", "1-1 Marunouchi, Chiyoda, Tokyo", 35.6812, 139.7671),
    ("Center", "3-1 Shinjuku, Shinjuku, Tokyo", 35.6896, 139.7006),
    ("Building", "1-1 Dogenzaka, Shibuya, Tokyo", 35.6580, 139.7016),
]


class PlaceSearchProvider:
    """Common interface: search(query) → PlaceSearchResponse, never raises for upstream errors."""

    source = "demo"

    def __init__(self, limit: int = 5) -> None:
        self.limit = limit

    async def search(self, query: Optional[str]) -> PlaceSearchResponse:
        if not query or not query.strip():
            return PlaceSearchResponse(results=[], source=self.source)
        return await self._search(query.strip())

    async def _search(self, query: str) -> PlaceSearchResponse:
        raise NotImplementedError

    def _response(self, rows: list[dict[str, Any]], source: Optional[str] = None) -> PlaceSearchResponse:
        return PlaceSearchResponse(
            results=[PlaceResult(**r) for r in rows[: self.limit]],
            source=source or self.source,
        )


class DemoPlaceSearchProvider(PlaceSearchProvider):
    """Deterministic sample data, clearly labelled source="demo"."""

    source = "demo"

    async def _search(self, query: str) -> PlaceSearchResponse:
        return self._response(demo_results(query))


class LivePlaceSearchProvider(PlaceSearchProvider):
    """
    Thin async wrapper around Google Places Text Search.

    Any upstream failure is logged and masked by fallback_results(); the
    caller always gets a 200-shaped response.
    """

    source = "live"

    def __init__(
        self,
        api_key: str,
        limit: int = 5,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(limit)
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    async def _search(self, query: str) -> PlaceSearchResponse:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    GOOGLE_PLACES_URL,
                    headers={
                        "X-Goog-Api-Key": self.api_key,
                        "X-Goog-FieldMask": _FIELD_MASK,
                        "Content-Type": "application/json",
                    },
                    json={"textQuery": query, "maxResultCount": self.limit},
                )
                response.raise_for_status()
                rows = [_parse_google_place(p) for p in response.json().get("places", [])]
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Places API error: %s — %s",
                exc.response.status_code,
                exc.response.text[:200],
            )
            return self._response(fallback_results(query), source="fallback")
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
            logger.error("Places request failed: %s", exc)
            return self._response(fallback_results(query), source="fallback")

        return self._response(rows)


def _parse_google_place(place: dict[str, Any]) -> dict[str, Any]:
    location = place["location"]
    return {
        "name": (place.get("displayName") or {}).get("text", ""),
        "address": place.get("formattedAddress", ""),
        "lat": float(location["latitude"]),
        "lng": float(location["longitude"]),
        "place_id": place["id"],
    }


def demo_results(query: str) -> list[dict[str, Any]]:
    lowered = query.lower()
    for keywords, rows in _DEMO_SETS:
        if any(k in lowered for k in keywords):
            return [dict(r) for r in rows]

    if "station" in lowered or "駅" in lowered:
        return [
            {"name": name, "address": address, "lat": lat, "lng": lng, "place_id": f"station-{i}"}
            for i, (name, (_, address, lat, lng)) in enumerate(
                zip((query, f"{query} East Exit", f"{query} West Exit"), _ANCHORS), start=1
            )
        ]

    return [
        {
            "name": f"{query} - related spot {i}",
            "address": address,
            "lat": lat,
            "lng": lng,
            "place_id": f"{query}-{i}",
        }
        for i, (_, address, lat, lng) in enumerate(_ANCHORS, start=1)
    ]


def fallback_results(query: str, rng: Optional[random.Random] = None) -> list[dict[str, Any]]:
    """Placeholder results within ~500 m of fixed landmarks. Not authoritative."""
    rng = rng or random.Random()
    stamp = int(time.time() * 1000)
    return [
        {
            "name": f"{query} {suffix}",
            "address": address,
            "lat": lat + (rng.random() - 0.5) * 0.01,
            "lng": lng + (rng.random() - 0.5) * 0.01,
            "place_id": f"fallback-{i}-{stamp}",
        }
        for i, (suffix, address, lat, lng) in enumerate(_ANCHORS, start=1)
    ]


def build_place_search_provider(config: Settings = settings) -> PlaceSearchProvider:
    if config.places_live:
        logger.info("Places search: live Google Places provider")
        return LivePlaceSearchProvider(
            config.places_api_key,
            limit=config.places_result_limit,
            timeout=config.places_timeout_seconds,
        )
    logger.warning(
        "PLACES_API_KEY not set — places search returns demo data. "
        "Set PLACES_API_KEY for real results."
    )
    return DemoPlaceSearchProvider(limit=config.places_result_limit)


# Module-level singleton, selected once at import/startup
place_search_provider = build_place_search_provider()
