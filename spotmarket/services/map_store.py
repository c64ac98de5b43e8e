"""
MapStore — persistence for map records in the `maps` collection.

Document shape:
  {
    "_id": ObjectId, "title": str, "description": str,
    "visibility": "public" | "private", "owner_id": str,
    "spots": [ {id, name, address, lat, lng, description, order}, ... ],
    "category": str | None, "tags": [str], "for_sale": bool, "price": int | None,
    "view_count": int, "purchase_count": int,
    "created_at": datetime, "updated_at": datetime,
  }

Ownership is checked here, at the data boundary, on every mutation:
the caller passes the acting user id and gets PermissionDeniedError if it
is not the map's owner_id. Routes never compare ids themselves.

Concurrent edits from two sessions are last-write-wins.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from bson.errors import InvalidId

from spotmarket.models.map import MapCreate, MapOut, Spot

logger = logging.getLogger(__name__)

MAPS = "maps"


class MapNotFoundError(Exception):
    def __init__(self, map_id: str) -> None:
        super().__init__(f"Map {map_id} not found")
        self.map_id = map_id


class SpotNotFoundError(Exception):
    def __init__(self, spot_id: str) -> None:
        super().__init__(f"Spot {spot_id} not found")
        self.spot_id = spot_id


class PermissionDeniedError(Exception):
    def __init__(self, message: str = "You do not have permission to edit this map") -> None:
        super().__init__(message)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def to_object_id(map_id: str) -> ObjectId:
    try:
        return ObjectId(map_id)
    except (InvalidId, TypeError):
        raise MapNotFoundError(map_id)


def doc_to_map(doc: dict, like_count: int = 0) -> MapOut:
    """Convert a raw MongoDB document to a MapOut model."""
    now = _now()
    return MapOut(
        id=str(doc["_id"]),
        title=doc.get("title", ""),
        description=doc.get("description") or "",
        visibility=doc.get("visibility", "private"),
        owner_id=doc.get("owner_id", ""),
        spots=[Spot(**s) for s in doc.get("spots") or []],
        category=doc.get("category"),
        tags=doc.get("tags") or [],
        for_sale=bool(doc.get("for_sale", False)),
        price=doc.get("price"),
        view_count=doc.get("view_count", 0),
        like_count=like_count,
        purchase_count=doc.get("purchase_count", 0),
        created_at=doc.get("created_at", now),
        updated_at=doc.get("updated_at", now),
    )


class MapStore:
    def __init__(self, db) -> None:
        self.collection = db[MAPS]

    # ── Reads ────────────────────────────────────────────────────────────────

    async def get(self, map_id: str) -> dict:
        doc = await self.collection.find_one({"_id": to_object_id(map_id)})
        if not doc:
            raise MapNotFoundError(map_id)
        return doc

    async def get_owned(self, map_id: str, user_id: Optional[str]) -> dict:
        doc = await self.get(map_id)
        if not user_id or doc.get("owner_id") != user_id:
            raise PermissionDeniedError()
        return doc

    async def list_public(self) -> list[dict]:
        return await self._find({"visibility": "public"})

    async def list_by_owner(self, owner_id: str) -> list[dict]:
        return await self._find({"owner_id": owner_id})

    async def _find(self, query: dict) -> list[dict]:
        docs = []
        async for doc in self.collection.find(query).sort("created_at", -1):
            docs.append(doc)
        return docs

    # ── Writes ───────────────────────────────────────────────────────────────

    async def create(self, owner_id: str, payload: MapCreate) -> dict:
        now = _now()
        doc = {
            **payload.model_dump(),
            "owner_id": owner_id,
            "spots": [],
            "for_sale": False,
            "price": None,
            "view_count": 0,
            "purchase_count": 0,
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Map %s created by %s", result.inserted_id, owner_id)
        return doc

    async def update_fields(self, map_id: str, user_id: str, fields: dict[str, Any]) -> dict:
        """Merge *fields* into the record. Returns the updated document."""
        doc = await self.get_owned(map_id, user_id)
        changes = {**fields, "updated_at": _now()}
        await self.collection.update_one({"_id": doc["_id"]}, {"$set": changes})
        return {**doc, **changes}

    async def delete(self, map_id: str, user_id: str) -> None:
        doc = await self.get_owned(map_id, user_id)
        await self.collection.delete_one({"_id": doc["_id"]})
        logger.info("Map %s deleted by %s", map_id, user_id)

    async def append_spot(self, map_id: str, user_id: str, spot: Spot) -> None:
        doc = await self.get_owned(map_id, user_id)
        await self.collection.update_one(
            {"_id": doc["_id"]},
            {"$push": {"spots": spot.model_dump()}, "$set": {"updated_at": _now()}},
        )

    async def replace_spots(self, map_id: str, user_id: str, spots: list[Spot]) -> None:
        doc = await self.get_owned(map_id, user_id)
        await self.collection.update_one(
            {"_id": doc["_id"]},
            {"$set": {"spots": [s.model_dump() for s in spots], "updated_at": _now()}},
        )

    # ── Counters ─────────────────────────────────────────────────────────────

    async def increment_views(self, map_id: str) -> int:
        """Add one view. Not deduplicated by viewer; returns the new count."""
        oid = to_object_id(map_id)
        await self.collection.update_one({"_id": oid}, {"$inc": {"view_count": 1}})
        doc = await self.collection.find_one({"_id": oid})
        if not doc:
            raise MapNotFoundError(map_id)
        return doc.get("view_count", 0)

    async def increment_purchases(self, map_id: str) -> bool:
        """Returns False when the map no longer exists."""
        try:
            oid = to_object_id(map_id)
        except MapNotFoundError:
            return False
        result = await self.collection.update_one({"_id": oid}, {"$inc": {"purchase_count": 1}})
        return bool(getattr(result, "matched_count", 0))
