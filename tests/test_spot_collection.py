"""
test_spot_collection.py — The in-memory ordered spot list.
"""

from spotmarket.models.map import PlaceCandidate
from spotmarket.services.spot_collection import SpotCollection

A = {"name": "Blue Bottle Kiyosumi", "address": "Koto, Tokyo", "lat": 35.6803, "lng": 139.7991}
B = {"name": "Fuglen Tomigaya", "address": "Shibuya, Tokyo", "lat": 35.6654, "lng": 139.6911}
C = {"name": "Onibus Coffee", "address": "Meguro, Tokyo", "lat": 35.6336, "lng": 139.7001}


class TestAdd:
    def test_orders_are_one_to_n_in_append_order(self):
        spots = SpotCollection()
        added = [spots.add({**A, "name": f"spot {i}"}) for i in range(7)]
        assert [s.order for s in spots] == list(range(1, 8))
        assert [s.id for s in spots] == [s.id for s in added]

    def test_new_spot_copies_place_and_has_empty_description(self):
        spot = SpotCollection().add(A)
        assert (spot.name, spot.address, spot.lat, spot.lng) == (A["name"], A["address"], A["lat"], A["lng"])
        assert spot.description == ""

    def test_ids_are_unique(self):
        spots = SpotCollection()
        ids = {spots.add(A).id for _ in range(20)}
        assert len(ids) == 20

    def test_duplicates_are_allowed(self):
        spots = SpotCollection()
        spots.add(A)
        spots.add(A)
        assert len(spots) == 2

    def test_accepts_place_models(self):
        spot = SpotCollection().add(PlaceCandidate(**B))
        assert spot.name == B["name"]

    def test_order_continues_from_length_after_removal(self):
        spots = SpotCollection()
        first = spots.add(A)
        spots.add(B)
        spots.remove(first.id)
        assert spots.add(C).order == 2


class TestRemove:
    def test_remove_unknown_id_is_noop(self):
        spots = SpotCollection()
        spots.add(A)
        spots.add(B)
        before = spots.spots
        assert spots.remove("does-not-exist") is None
        assert spots.spots == before

    def test_add_then_remove_restores_previous_state(self):
        spots = SpotCollection()
        spots.add(A)
        spots.add(B)
        before = spots.spots
        added = spots.add(C)
        spots.remove(added.id)
        assert spots.spots == before

    def test_no_renumbering_on_remove(self):
        spots = SpotCollection()
        a, b, c = spots.add(A), spots.add(B), spots.add(C)
        spots.remove(b.id)
        assert [(s.id, s.order) for s in spots] == [(a.id, 1), (c.id, 3)]


class TestUpdate:
    def test_update_merges_fields(self):
        spots = SpotCollection()
        spot = spots.add(A)
        updated = spots.update(spot.id, {"description": "Great pour-over"})
        assert updated.description == "Great pour-over"
        assert spots.get(spot.id).name == A["name"]

    def test_update_unknown_id_is_noop(self):
        spots = SpotCollection()
        spots.add(A)
        before = spots.spots
        assert spots.update("missing", {"name": "x"}) is None
        assert spots.spots == before

    def test_update_with_unchanged_values_is_identical(self):
        spots = SpotCollection()
        spot = spots.add(A)
        spots.update(spot.id, {"name": spot.name, "lat": spot.lat})
        assert spots.get(spot.id).model_dump() == spot.model_dump()

    def test_update_cannot_change_id_or_order(self):
        spots = SpotCollection()
        spot = spots.add(A)
        spots.update(spot.id, {"id": "hijack", "order": 99, "name": "Renamed"})
        kept = spots.get(spot.id)
        assert kept.order == 1
        assert kept.name == "Renamed"


def test_snapshots_are_independent():
    spots = SpotCollection()
    spot = spots.add(A)
    draft = spots.copy()
    draft.update(spot.id, {"name": "Draft only"})
    assert spots.get(spot.id).name == A["name"]
