"""
SpotCollection — the ordered list of spots for one map under edit.

Pure in-memory model, no I/O. The MapEditor persists whatever this
produces. Rules:

  - add() assigns order = current length + 1 and a fresh uuid4 id.
    Duplicate names or coordinates are allowed.
  - update() merges fields into the matching spot; unknown ids are a no-op.
    id and order are never changed through update().
  - remove() drops the spot without renumbering the rest, so orders can
    have gaps. Only relative order matters for rendering.
  - There is no reorder operation.
"""

import uuid
from typing import Any, Iterable, Iterator, Optional

from spotmarket.models.map import Spot

_IMMUTABLE_FIELDS = frozenset({"id", "order"})


class SpotCollection:
    def __init__(self, spots: Optional[Iterable[Spot]] = None) -> None:
        self._spots: list[Spot] = [s.model_copy() for s in (spots or [])]

    def __len__(self) -> int:
        return len(self._spots)

    def __iter__(self) -> Iterator[Spot]:
        return iter(self._spots)

    @property
    def spots(self) -> list[Spot]:
        """Snapshot of the current spots, in list order."""
        return [s.model_copy() for s in self._spots]

    def copy(self) -> "SpotCollection":
        return SpotCollection(self._spots)

    def get(self, spot_id: str) -> Optional[Spot]:
        return next((s for s in self._spots if s.id == spot_id), None)

    def build_spot(self, place: Any) -> Spot:
        """Create (but don't append) the spot that add() would append for *place*."""
        return Spot(
            id=uuid.uuid4().hex,
            name=_field(place, "name"),
            address=_field(place, "address", ""),
            lat=_field(place, "lat"),
            lng=_field(place, "lng"),
            description="",
            order=len(self._spots) + 1,
        )

    def append(self, spot: Spot) -> None:
        self._spots.append(spot)

    def add(self, place: Any) -> Spot:
        """Append a new spot built from a place candidate (model or dict)."""
        spot = self.build_spot(place)
        self.append(spot)
        return spot

    def update(self, spot_id: str, fields: dict[str, Any]) -> Optional[Spot]:
        changes = {k: v for k, v in fields.items() if k not in _IMMUTABLE_FIELDS}
        for idx, spot in enumerate(self._spots):
            if spot.id == spot_id:
                updated = spot.model_copy(update=changes)
                self._spots[idx] = updated
                return updated
        return None

    def remove(self, spot_id: str) -> Optional[Spot]:
        removed = self.get(spot_id)
        if removed is not None:
            self._spots = [s for s in self._spots if s.id != spot_id]
        return removed


def _field(place: Any, name: str, default: Any = None) -> Any:
    if isinstance(place, dict):
        value = place.get(name, default)
    else:
        value = getattr(place, name, default)
    if value is None and default is None:
        raise ValueError(f"place is missing required field '{name}'")
    return value
