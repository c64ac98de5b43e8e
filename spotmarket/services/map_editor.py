"""
MapEditor — one owner's editing session on one map.

Binds a SpotCollection to the MapStore. Every mutation is computed on a
copy, written to the store, and only then committed to the local state,
so a failed write leaves the session exactly as it was. Store errors
(PermissionDeniedError, MapNotFoundError, driver errors) propagate to
the caller unchanged; there is no retry.
"""

import logging
from typing import Any, Optional

from spotmarket.models.map import Spot
from spotmarket.services.map_store import MapStore, SpotNotFoundError
from spotmarket.services.spot_collection import SpotCollection

logger = logging.getLogger(__name__)


class MapEditor:
    def __init__(self, store: MapStore, map_doc: dict, user_id: str) -> None:
        self.store = store
        self.user_id = user_id
        self.map_id = str(map_doc["_id"])
        self.doc = map_doc
        self.spots = SpotCollection(Spot(**s) for s in map_doc.get("spots") or [])

    @classmethod
    async def load(cls, store: MapStore, map_id: str, user_id: Optional[str]) -> "MapEditor":
        """Open an editing session; raises PermissionDeniedError for non-owners."""
        doc = await store.get_owned(map_id, user_id)
        return cls(store, doc, user_id)

    @property
    def document(self) -> dict:
        """Current map document with the local spot list applied."""
        return {**self.doc, "spots": [s.model_dump() for s in self.spots]}

    async def add_spot(self, place: Any) -> Spot:
        spot = self.spots.build_spot(place)
        await self.store.append_spot(self.map_id, self.user_id, spot)
        self.spots.append(spot)
        logger.debug("Spot %s (order %d) added to map %s", spot.id, spot.order, self.map_id)
        return spot

    async def update_spot(self, spot_id: str, fields: dict[str, Any]) -> Spot:
        draft = self.spots.copy()
        updated = draft.update(spot_id, fields)
        if updated is None:
            raise SpotNotFoundError(spot_id)
        await self.store.replace_spots(self.map_id, self.user_id, draft.spots)
        self.spots = draft
        return updated

    async def remove_spot(self, spot_id: str) -> Spot:
        draft = self.spots.copy()
        removed = draft.remove(spot_id)
        if removed is None:
            raise SpotNotFoundError(spot_id)
        await self.store.replace_spots(self.map_id, self.user_id, draft.spots)
        self.spots = draft
        return removed

    async def update_map(self, fields: dict[str, Any]) -> dict:
        """Merge partial map fields (title, visibility, sale settings, ...)."""
        fields = {k: v for k, v in fields.items() if k not in ("_id", "owner_id", "spots")}
        self.doc = await self.store.update_fields(self.map_id, self.user_id, fields)
        return self.document
