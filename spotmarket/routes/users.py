"""
users.py — Public profile routes.

Routes:
  GET   /users/profile          — current user's profile
  PATCH /users/profile          — partial update
  GET   /users/{user_id}/maps   — a user's public maps (author page)

The first two require a valid Bearer token.
"""

from bson import ObjectId
from fastapi import APIRouter, Depends, HTTPException

from spotmarket.core.database import get_db
from spotmarket.models.map import MapOut
from spotmarket.models.user import Profile, ProfileUpdate
from spotmarket.routes.auth import CurrentUser
from spotmarket.services.likes import LikeService
from spotmarket.services.map_store import MapStore, doc_to_map

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=Profile)
async def get_profile(current_user: CurrentUser):
    return current_user.profile


@router.patch("/profile", response_model=Profile)
async def patch_profile(
    payload: ProfileUpdate,
    current_user: CurrentUser,
    db=Depends(get_db),
):
    """Partially update the profile — only provided fields are changed."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    merged = {**current_user.profile.model_dump(), **payload.model_dump(exclude_none=True)}
    await db["users"].update_one(
        {"_id": ObjectId(current_user.id)},
        {"$set": {"profile": merged}},
    )
    return Profile(**merged)


@router.get("/{user_id}/maps", response_model=list[MapOut])
async def list_user_public_maps(user_id: str, db=Depends(get_db)):
    if db is None:
        return []
    docs = [d for d in await MapStore(db).list_by_owner(user_id) if d.get("visibility") == "public"]
    counts = await LikeService(db).counts([str(d["_id"]) for d in docs])
    return [doc_to_map(d, counts[str(d["_id"])]) for d in docs]
