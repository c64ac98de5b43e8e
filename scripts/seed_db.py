#!/usr/bin/env python3
"""
seed_db.py — Populate MongoDB with sample SpotMarket data for local development.

Inserts:
  - Two demo accounts (password: demopass123)
  - A handful of Tokyo maps, some public and listed for sale
  - Creates required indexes (including the unique like index)

Usage:
    python scripts/seed_db.py

Requires:
    pip install -e .
    MongoDB running locally (or set MONGO_URI / MONGO_DB_NAME env vars)

Safe to re-run: deletes seed data first, then re-inserts.
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from spotmarket.core.config import settings
from spotmarket.core.security import hash_password
from spotmarket.services.likes import LIKES
from spotmarket.services.map_store import MAPS
from spotmarket.services.payments import PURCHASES

SEED_DOMAIN = "@seed.spotmarket.dev"
DEMO_PASSWORD = "demopass123"

USERS = [
    {"email": f"aiko{SEED_DOMAIN}", "display_name": "Aiko", "bio": "Coffee first, then everything else."},
    {"email": f"ren{SEED_DOMAIN}", "display_name": "Ren", "bio": "Weekend hiker around Kanto."},
]


def _spots(*places: tuple[str, str, float, float]) -> list[dict]:
    return [
        {
            "id": uuid.uuid4().hex,
            "name": name,
            "address": address,
            "lat": lat,
            "lng": lng,
            "description": "",
            "order": i,
        }
        for i, (name, address, lat, lng) in enumerate(places, start=1)
    ]


# (owner index, map fields)
MAPS_BY_OWNER = [
    (0, {
        "title": "Tokyo Cafe Crawl",
        "description": "Pour-over and espresso stops across Shibuya and Shinjuku.",
        "visibility": "public",
        "category": "cafe",
        "tags": ["coffee", "tokyo"],
        "for_sale": True,
        "price": 500,
        "spots": _spots(
            ("Starbucks Shibuya", "1-12-1 Dogenzaka, Shibuya, Tokyo", 35.6580, 139.7016),
            ("Tully's Coffee Shinjuku", "3-14-1 Shinjuku, Shinjuku, Tokyo", 35.6896, 139.7006),
            ("Doutor Coffee Tokyo Station", "1-9-1 Marunouchi, Chiyoda, Tokyo", 35.6812, 139.7671),
        ),
    }),
    (0, {
        "title": "Ginza Dinner Shortlist",
        "description": "Work in progress.",
        "visibility": "private",
        "category": "restaurant",
        "tags": [],
        "for_sale": False,
        "price": None,
        "spots": _spots(("Italian Restaurant Ginza", "5-4-1 Ginza, Chuo, Tokyo", 35.6719, 139.7658)),
    }),
    (1, {
        "title": "Parks for a Slow Sunday",
        "description": "Green space inside the Yamanote loop.",
        "visibility": "public",
        "category": "nature",
        "tags": ["parks", "free"],
        "for_sale": False,
        "price": None,
        "spots": _spots(
            ("Ueno Park", "5-20 Uenokoen, Taito, Tokyo", 35.7148, 139.7744),
            ("Yoyogi Park", "2-1 Yoyogikamizonocho, Shibuya, Tokyo", 35.6732, 139.6950),
            ("Shinjuku Gyoen", "11 Naitomachi, Shinjuku, Tokyo", 35.6851, 139.7100),
        ),
    }),
]


async def seed() -> None:
    print("Connecting to MongoDB...")
    client = AsyncIOMotorClient(settings.mongo_uri)
    db = client[settings.mongo_db_name]

    try:
        await client.admin.command("ping")
        print("Connected.")

        # ─── Clean up previous seed data ──────────────────────────────────────
        seed_users = [u async for u in db.users.find({"email": {"$regex": f"{SEED_DOMAIN}$"}})]
        seed_ids = [str(u["_id"]) for u in seed_users]
        removed = await db[MAPS].delete_many({"owner_id": {"$in": seed_ids}})
        await db[LIKES].delete_many({"user_id": {"$in": seed_ids}})
        await db.users.delete_many({"_id": {"$in": [u["_id"] for u in seed_users]}})
        print(f"Removed {len(seed_users)} seed users and {removed.deleted_count} seed maps.")

        # ─── Insert users ─────────────────────────────────────────────────────
        now = datetime.now(timezone.utc)
        user_ids = []
        for user in USERS:
            result = await db.users.insert_one({
                "email": user["email"],
                "hashed_password": hash_password(DEMO_PASSWORD),
                "profile": {"display_name": user["display_name"], "bio": user["bio"], "photo_url": ""},
                "created_at": now,
                "is_active": True,
            })
            user_ids.append(str(result.inserted_id))
        print(f"Inserted {len(user_ids)} users (password: {DEMO_PASSWORD}).")

        # ─── Insert maps ──────────────────────────────────────────────────────
        map_ids = []
        for i, (owner, fields) in enumerate(MAPS_BY_OWNER):
            created = now - timedelta(days=len(MAPS_BY_OWNER) - i)
            result = await db[MAPS].insert_one({
                **fields,
                "owner_id": user_ids[owner],
                "view_count": 0,
                "purchase_count": 0,
                "created_at": created,
                "updated_at": created,
            })
            map_ids.append(str(result.inserted_id))
        print(f"Inserted {len(map_ids)} maps.")

        # Ren likes Aiko's cafe map
        await db[LIKES].insert_one({"map_id": map_ids[0], "user_id": user_ids[1], "created_at": now})

        # ─── Ensure indexes exist ─────────────────────────────────────────────
        await db.users.create_index("email", unique=True)
        await db[MAPS].create_index([("owner_id", ASCENDING), ("created_at", DESCENDING)])
        await db[MAPS].create_index([("visibility", ASCENDING), ("created_at", DESCENDING)])
        await db[LIKES].create_index([("map_id", ASCENDING), ("user_id", ASCENDING)], unique=True)
        await db[PURCHASES].create_index("payment_intent_id", unique=True)
        await db[PURCHASES].create_index([("buyer_id", ASCENDING), ("created_at", DESCENDING)])
        print("Indexes ensured.")

        print("\nSeed complete! Maps:")
        async for doc in db[MAPS].find({"owner_id": {"$in": user_ids}}).sort("created_at", ASCENDING):
            print(f"  [{doc['visibility']:7}] {doc['title']} ({len(doc['spots'])} spots)")

    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(seed())
