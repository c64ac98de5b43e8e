"""
map.py — Pydantic schemas for maps and their spots.

Separation of concerns:
  Spot            — one point inside a map (stored embedded in the map doc)
  PlaceCandidate  — a place chosen from search, the input to "add spot"
  SpotUpdate      — partial spot edit (PATCH semantics)
  MapCreate       — what the client sends to create a map
  MapUpdate       — partial map edit
  SaleSettings    — for-sale flag, price, category and tags
  MapOut          — what the API returns
  LikeStatus / ViewCount / PriceQuote — small counter / pricing responses

Request models carry the validation (coordinate ranges, non-empty names,
price bounds); the in-memory SpotCollection does not re-check it.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

Visibility = Literal["public", "private"]

# id → label, from the marketplace category selector
MAP_CATEGORIES: dict[str, str] = {
    "restaurant": "Restaurants & Food",
    "cafe": "Cafes",
    "travel": "Travel & Sightseeing",
    "shopping": "Shopping",
    "nature": "Nature & Outdoors",
    "culture": "Culture & Arts",
    "sports": "Sports",
    "entertainment": "Entertainment",
    "other": "Other",
}
Category = Literal[
    "restaurant", "cafe", "travel", "shopping", "nature",
    "culture", "sports", "entertainment", "other",
]

MIN_PRICE = 100
MAX_PRICE = 10_000
PRICE_STEP = 100
MAX_TAGS = 10

_CLEARABLE_MAP_FIELDS = frozenset({"category"})


# ── Spots ─────────────────────────────────────────────────────────────────────

class Spot(BaseModel):
    """A named point in a map. `order` is 1-based append sequence; gaps are allowed."""
    id: str
    name: str
    address: str = ""
    lat: float
    lng: float
    description: str = ""
    order: int


class PlaceCandidate(BaseModel):
    """Payload for POST /api/v1/maps/{id}/spots — a place picked from search."""
    name: str = Field(min_length=1, max_length=200)
    address: str = Field(default="", max_length=500)
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    place_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class SpotUpdate(BaseModel):
    """Partial spot edit — only provided fields are changed."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=2000)
    lat: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    lng: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("name must not be blank")
        return v.strip() if v else v


# ── Maps ──────────────────────────────────────────────────────────────────────

class MapCreate(BaseModel):
    """Payload for POST /api/v1/maps."""
    title: str = Field(min_length=1, max_length=120)
    description: str = Field(default="", max_length=2000)
    visibility: Visibility = "private"
    category: Optional[Category] = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        return normalise_tags(v)


class MapUpdate(BaseModel):
    """Partial map edit (PATCH semantics). Only category may be cleared with null."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=2000)
    visibility: Optional[Visibility] = None
    category: Optional[Category] = None
    tags: Optional[list[str]] = None

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("title must not be blank")
        return v.strip() if v else v

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: Optional[list[str]]) -> Optional[list[str]]:
        return None if v is None else normalise_tags(v)

    def changes(self) -> dict:
        """Fields the client sent; an explicit null only counts for clearable fields."""
        return {
            k: v for k, v in self.model_dump(exclude_unset=True).items()
            if v is not None or k in _CLEARABLE_MAP_FIELDS
        }


class SaleSettings(BaseModel):
    """Payload for PUT /api/v1/maps/{id}/sale."""
    for_sale: bool = False
    price: Optional[int] = None
    category: Category = "other"
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        return normalise_tags(v)

    @model_validator(mode="after")
    def _check_price(self) -> "SaleSettings":
        if not self.for_sale:
            # Price is only meaningful while the map is listed for sale
            self.price = None
            return self
        if self.price is None:
            raise ValueError("price is required when for_sale is true")
        if not MIN_PRICE <= self.price <= MAX_PRICE or self.price % PRICE_STEP:
            raise ValueError(
                f"price must be between {MIN_PRICE} and {MAX_PRICE} in steps of {PRICE_STEP}"
            )
        return self


class MapOut(BaseModel):
    """Map as returned by the API. like_count is counted from like rows at read time."""
    id: str
    title: str
    description: str = ""
    visibility: Visibility
    owner_id: str
    spots: list[Spot] = Field(default_factory=list)
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    for_sale: bool = False
    price: Optional[int] = None
    view_count: int = 0
    like_count: int = 0
    purchase_count: int = 0
    created_at: datetime
    updated_at: datetime


# ── Counters / pricing ────────────────────────────────────────────────────────

class LikeStatus(BaseModel):
    liked: bool
    like_count: int


class ViewCount(BaseModel):
    view_count: int
    counted: bool  # False when the caller owns the map


class PriceQuote(BaseModel):
    """Checkout breakdown: list price plus the processor fee."""
    price: int
    fee: int
    total: int
    currency: str
    formatted_total: str


def normalise_tags(tags: list[str]) -> list[str]:
    """Strip, drop blanks and duplicates (first occurrence wins), cap at MAX_TAGS."""
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    if len(cleaned) > MAX_TAGS:
        raise ValueError(f"at most {MAX_TAGS} tags are allowed")
    return cleaned
