"""
test_search_box.py — Debounced search-as-you-type state machine.
"""

import asyncio

import pytest

from spotmarket.models.place import PlaceResult, PlaceSearchResponse
from spotmarket.services.places import DemoPlaceSearchProvider
from spotmarket.services.search_box import PlaceSearchBox, SearchState


def place(name: str) -> PlaceResult:
    return PlaceResult(name=name, address="Tokyo", lat=35.68, lng=139.76, place_id=name.lower())


class RecordingProvider:
    """Records queries; can hold a query in flight until released."""

    def __init__(self, results=None, error: Exception | None = None, hold: str | None = None):
        self.queries: list[str] = []
        self.results = results
        self.error = error
        self.hold = hold
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def search(self, query):
        self.queries.append(query)
        if query == self.hold:
            self.started.set()
            await self.release.wait()
        if self.error is not None:
            raise self.error
        results = self.results if self.results is not None else [place(query)]
        return PlaceSearchResponse(results=results, source="demo")


@pytest.fixture()
def provider():
    return RecordingProvider()


class TestDebounce:
    async def test_only_latest_keystroke_is_searched(self, provider):
        box = PlaceSearchBox(provider, debounce_ms=20)
        for text in ("c", "ca", "caf", "cafe"):
            box.type(text)
            assert box.state == SearchState.DEBOUNCING

        await box.wait()

        assert provider.queries == ["cafe"]
        assert box.searches_issued == 1
        assert box.state == SearchState.RESULTS
        assert [r.name for r in box.results] == ["cafe"]

    async def test_blank_text_goes_idle_without_searching(self, provider):
        box = PlaceSearchBox(provider, debounce_ms=5)
        box.type("cafe")
        box.type("   ")
        await asyncio.sleep(0.02)

        assert box.state == SearchState.IDLE
        assert provider.queries == []

    async def test_default_debounce_from_settings(self, provider):
        assert PlaceSearchBox(provider).debounce == pytest.approx(0.3)


class TestOutcomes:
    async def test_empty_results(self):
        box = PlaceSearchBox(RecordingProvider(results=[]), debounce_ms=1)
        box.type("nowhere")
        await box.wait()
        assert box.state == SearchState.EMPTY
        assert box.results == []

    async def test_provider_error(self):
        box = PlaceSearchBox(RecordingProvider(error=RuntimeError("quota exceeded")), debounce_ms=1)
        box.type("cafe")
        await box.wait()
        assert box.state == SearchState.ERROR
        assert box.error == "quota exceeded"
        assert box.results == []

    async def test_works_with_demo_provider(self):
        box = PlaceSearchBox(DemoPlaceSearchProvider(), debounce_ms=1)
        box.type("park")
        await box.wait()
        assert box.results[0].name == "Ueno Park"


class TestSupersededSearch:
    async def test_stale_in_flight_result_is_discarded(self):
        provider = RecordingProvider(hold="cafe")
        box = PlaceSearchBox(provider, debounce_ms=1)

        box.type("cafe")
        await provider.started.wait()
        assert box.state == SearchState.SEARCHING

        box.type("park")
        provider.release.set()
        await box.wait()

        assert provider.queries == ["cafe", "park"]
        assert [r.name for r in box.results] == ["park"]
        assert box.state == SearchState.RESULTS

    async def test_clear_during_flight_ignores_result(self):
        provider = RecordingProvider(hold="cafe")
        box = PlaceSearchBox(provider, debounce_ms=1)

        box.type("cafe")
        await provider.started.wait()
        box.clear()
        provider.release.set()
        await asyncio.sleep(0.01)

        assert box.state == SearchState.IDLE
        assert box.results == []


class TestSelect:
    async def test_select_notifies_and_resets(self, provider):
        chosen = []
        box = PlaceSearchBox(provider, on_select=chosen.append, debounce_ms=1)
        box.type("cafe")
        await box.wait()

        picked = box.select(box.results[0])

        assert chosen == [picked]
        assert box.query == ""
        assert box.state == SearchState.IDLE
        assert box.results == []

    async def test_select_cancels_pending_search(self, provider):
        box = PlaceSearchBox(provider, on_select=lambda p: None, debounce_ms=50)
        box.type("cafe")
        box.select(place("Ueno Park"))
        await asyncio.sleep(0.08)
        assert provider.queries == []
