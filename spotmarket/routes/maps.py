"""
maps.py — Map, spot, and counter routes.

Routes:
  POST   /api/v1/maps                           — create a map (owner = caller)
  GET    /api/v1/maps/marketplace               — public maps, ?category= & ?q= filters
  GET    /api/v1/maps/mine                      — caller's maps, newest first
  GET    /api/v1/maps/{id}                      — one map (private maps: owner only)
  PATCH  /api/v1/maps/{id}                      — partial update (owner)
  PUT    /api/v1/maps/{id}/sale                 — sale settings (owner)
  DELETE /api/v1/maps/{id}                      — delete (owner)
  POST   /api/v1/maps/{id}/spots                — add a spot from a place candidate (owner)
  PATCH  /api/v1/maps/{id}/spots/{spot_id}      — edit a spot (owner)
  DELETE /api/v1/maps/{id}/spots/{spot_id}      — remove a spot (owner)
  POST   /api/v1/maps/{id}/views                — count a view unless caller is the owner
  GET    /api/v1/maps/{id}/quote                — checkout price breakdown
  GET    /api/v1/maps/{id}/like                 — like state + count
  POST   /api/v1/maps/{id}/like                 — toggle like

Ownership is enforced by MapStore; MapNotFoundError / PermissionDeniedError /
SpotNotFoundError raised from the services become 404 / 403 / 404 through
the exception handlers registered in main.py.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from spotmarket.core.config import settings
from spotmarket.core.database import get_db
from spotmarket.models.map import (
    LikeStatus,
    MapCreate,
    MapOut,
    MapUpdate,
    PlaceCandidate,
    PriceQuote,
    SaleSettings,
    Spot,
    SpotUpdate,
    ViewCount,
)
from spotmarket.routes.auth import CurrentUser, OptionalUserId
from spotmarket.services.likes import LikeService
from spotmarket.services.map_editor import MapEditor
from spotmarket.services.map_store import MapNotFoundError, MapStore, doc_to_map
from spotmarket.services.marketplace import filter_maps
from spotmarket.services.pricing import format_price, processor_fee, total_with_fee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/maps", tags=["maps"])


# ── Helpers ───────────────────────────────────────────────────────────────────

def _require_db(db):
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")
    return db


async def _map_out(db, doc: dict) -> MapOut:
    return doc_to_map(doc, await LikeService(db).count(str(doc["_id"])))


async def _maps_out(db, docs: list[dict]) -> list[MapOut]:
    counts = await LikeService(db).counts([str(d["_id"]) for d in docs])
    return [doc_to_map(d, counts[str(d["_id"])]) for d in docs]


async def _visible_doc(store: MapStore, map_id: str, user_id: Optional[str]) -> dict:
    """Private maps are reported as missing to anyone but their owner."""
    doc = await store.get(map_id)
    if doc.get("visibility") != "public" and doc.get("owner_id") != user_id:
        raise MapNotFoundError(map_id)
    return doc


# ── Maps ──────────────────────────────────────────────────────────────────────

@router.post("", response_model=MapOut, status_code=status.HTTP_201_CREATED)
async def create_map(payload: MapCreate, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    doc = await MapStore(db).create(current_user.id, payload)
    return doc_to_map(doc)


@router.get("/marketplace", response_model=list[MapOut])
async def marketplace(
    category: Optional[str] = Query(default=None, description="Category id, or 'all'"),
    q: Optional[str] = Query(default=None, description="Substring of title or description"),
    db=Depends(get_db),
):
    """All public maps, filtered in memory by category and free text."""
    if db is None:
        return []
    docs = filter_maps(await MapStore(db).list_public(), category=category, query=q)
    return await _maps_out(db, docs)


@router.get("/mine", response_model=list[MapOut])
async def my_maps(current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    return await _maps_out(db, await MapStore(db).list_by_owner(current_user.id))


@router.get("/{map_id}", response_model=MapOut)
async def get_map(map_id: str, user_id: OptionalUserId, db=Depends(get_db)):
    db = _require_db(db)
    return await _map_out(db, await _visible_doc(MapStore(db), map_id, user_id))


@router.patch("/{map_id}", response_model=MapOut)
async def update_map(map_id: str, payload: MapUpdate, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    editor = await MapEditor.load(MapStore(db), map_id, current_user.id)
    doc = await editor.update_map(payload.changes())
    return await _map_out(db, doc)


@router.put("/{map_id}/sale", response_model=MapOut)
async def update_sale_settings(
    map_id: str,
    payload: SaleSettings,
    current_user: CurrentUser,
    db=Depends(get_db),
):
    db = _require_db(db)
    editor = await MapEditor.load(MapStore(db), map_id, current_user.id)
    doc = await editor.update_map(payload.model_dump())
    return await _map_out(db, doc)


@router.delete("/{map_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_map(map_id: str, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    await MapStore(db).delete(map_id, current_user.id)
    await LikeService(db).delete_for_map(map_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Spots ─────────────────────────────────────────────────────────────────────

@router.post("/{map_id}/spots", response_model=Spot, status_code=status.HTTP_201_CREATED)
async def add_spot(map_id: str, payload: PlaceCandidate, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    editor = await MapEditor.load(MapStore(db), map_id, current_user.id)
    return await editor.add_spot(payload)


@router.patch("/{map_id}/spots/{spot_id}", response_model=Spot)
async def update_spot(
    map_id: str,
    spot_id: str,
    payload: SpotUpdate,
    current_user: CurrentUser,
    db=Depends(get_db),
):
    db = _require_db(db)
    editor = await MapEditor.load(MapStore(db), map_id, current_user.id)
    return await editor.update_spot(spot_id, payload.model_dump(exclude_none=True))


@router.delete("/{map_id}/spots/{spot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_spot(map_id: str, spot_id: str, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    editor = await MapEditor.load(MapStore(db), map_id, current_user.id)
    await editor.remove_spot(spot_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Counters ──────────────────────────────────────────────────────────────────

@router.post("/{map_id}/views", response_model=ViewCount)
async def record_view(map_id: str, user_id: OptionalUserId, db=Depends(get_db)):
    """One call = one view. Reloads count again; the owner's own views don't."""
    db = _require_db(db)
    store = MapStore(db)
    doc = await _visible_doc(store, map_id, user_id)
    if doc.get("owner_id") == user_id:
        return ViewCount(view_count=doc.get("view_count", 0), counted=False)
    return ViewCount(view_count=await store.increment_views(map_id), counted=True)


@router.get("/{map_id}/quote", response_model=PriceQuote)
async def price_quote(map_id: str, user_id: OptionalUserId, db=Depends(get_db)):
    db = _require_db(db)
    doc = await _visible_doc(MapStore(db), map_id, user_id)
    price = doc.get("price")
    if not doc.get("for_sale") or not price:
        raise HTTPException(status_code=400, detail="This map is not for sale")
    currency = settings.default_currency
    total = total_with_fee(price)
    return PriceQuote(
        price=price,
        fee=processor_fee(price),
        total=total,
        currency=currency,
        formatted_total=format_price(total, currency),
    )


@router.get("/{map_id}/like", response_model=LikeStatus)
async def like_status(map_id: str, user_id: OptionalUserId, db=Depends(get_db)):
    db = _require_db(db)
    await _visible_doc(MapStore(db), map_id, user_id)
    likes = LikeService(db)
    return LikeStatus(liked=await likes.is_liked(map_id, user_id), like_count=await likes.count(map_id))


@router.post("/{map_id}/like", response_model=LikeStatus)
async def toggle_like(map_id: str, current_user: CurrentUser, db=Depends(get_db)):
    db = _require_db(db)
    await _visible_doc(MapStore(db), map_id, current_user.id)
    likes = LikeService(db)
    liked = await likes.toggle(map_id, current_user.id)
    return LikeStatus(liked=liked, like_count=await likes.count(map_id))
