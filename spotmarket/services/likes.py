"""
LikeService — per-user, per-map like toggles in the `likes` collection.

One row per (map_id, user_id) means "liked". Like counts are always
derived by counting rows at read time; the map document carries no
denormalised like counter that could drift.

toggle() is query-then-insert/delete. The seed script creates a unique
index on (map_id, user_id); if two concurrent toggles race, the losing
insert hits DuplicateKeyError and is treated as "already liked".
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import DuplicateKeyError

logger = logging.getLogger(__name__)

LIKES = "likes"


class LikeService:
    def __init__(self, db) -> None:
        self.collection = db[LIKES]

    async def is_liked(self, map_id: str, user_id: Optional[str]) -> bool:
        if not user_id:
            return False
        doc = await self.collection.find_one({"map_id": map_id, "user_id": user_id})
        return doc is not None

    async def count(self, map_id: str) -> int:
        return await self.collection.count_documents({"map_id": map_id})

    async def counts(self, map_ids: list[str]) -> dict[str, int]:
        return {map_id: await self.count(map_id) for map_id in map_ids}

    async def like(self, map_id: str, user_id: str) -> None:
        if await self.is_liked(map_id, user_id):
            return
        try:
            await self.collection.insert_one(
                {"map_id": map_id, "user_id": user_id, "created_at": datetime.now(tz=timezone.utc)}
            )
        except DuplicateKeyError:
            logger.debug("Concurrent like for map %s by %s", map_id, user_id)

    async def unlike(self, map_id: str, user_id: str) -> None:
        await self.collection.delete_many({"map_id": map_id, "user_id": user_id})

    async def toggle(self, map_id: str, user_id: str) -> bool:
        """Flip the like state; returns the new state (True = liked)."""
        if await self.is_liked(map_id, user_id):
            await self.unlike(map_id, user_id)
            return False
        await self.like(map_id, user_id)
        return True

    async def delete_for_map(self, map_id: str) -> None:
        await self.collection.delete_many({"map_id": map_id})
