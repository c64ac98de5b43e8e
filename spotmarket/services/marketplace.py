"""
Marketplace filtering — derived views over the list of public maps.

The store returns every public map; filtering happens here, in memory,
on each request. Category and text filters combine as an intersection.
"""

from typing import Iterable, Optional, TypeVar

from spotmarket.models.map import MapOut

ALL_CATEGORIES = "all"

M = TypeVar("M", MapOut, dict)


def _get(item, name: str):
    return item.get(name) if isinstance(item, dict) else getattr(item, name, None)


def matches_category(item, category: Optional[str]) -> bool:
    if not category or category == ALL_CATEGORIES:
        return True
    return _get(item, "category") == category


def matches_text(item, query: Optional[str]) -> bool:
    """Case-insensitive substring match against title or description."""
    if not query or not query.strip():
        return True
    needle = query.strip().lower()
    title = (_get(item, "title") or "").lower()
    description = (_get(item, "description") or "").lower()
    return needle in title or needle in description


def filter_maps(
    maps: Iterable[M],
    category: Optional[str] = None,
    query: Optional[str] = None,
) -> list[M]:
    return [m for m in maps if matches_category(m, category) and matches_text(m, query)]
