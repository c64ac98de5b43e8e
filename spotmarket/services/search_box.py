"""
PlaceSearchBox — debounced search-as-you-type over a PlaceSearchProvider.

State machine:

    IDLE ──keystroke──▶ DEBOUNCING ──timer──▶ SEARCHING ──▶ RESULTS | EMPTY | ERROR
      ▲                    │  ▲                                         │
      │                    └──┘ keystroke resets the timer              │
      └──────────── select() / clear() / blank query ◀──────────────────┘

Each keystroke cancels the pending timer and schedules a new one; only the
latest scheduled search runs. A search already in flight is not aborted,
but if the text changed meanwhile its result is discarded.
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from spotmarket.core.config import settings
from spotmarket.models.place import PlaceResult
from spotmarket.services.places import PlaceSearchProvider

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SEARCHING = "searching"
    RESULTS = "results"
    EMPTY = "empty"
    ERROR = "error"


class PlaceSearchBox:
    def __init__(
        self,
        provider: PlaceSearchProvider,
        on_select: Optional[Callable[[PlaceResult], None]] = None,
        debounce_ms: Optional[int] = None,
    ) -> None:
        self.provider = provider
        self.on_select = on_select
        self.debounce = (settings.search_debounce_ms if debounce_ms is None else debounce_ms) / 1000
        self.query = ""
        self.state = SearchState.IDLE
        self.results: list[PlaceResult] = []
        self.error: Optional[str] = None
        self.searches_issued = 0
        self._generation = 0
        self._pending: Optional[asyncio.Task] = None

    def type(self, text: str) -> None:
        """Replace the query text (one keystroke) and reschedule the search."""
        self.query = text
        self._generation += 1
        self._cancel_pending()
        if not text.strip():
            self._reset()
            return
        self.state = SearchState.DEBOUNCING
        self._pending = asyncio.get_running_loop().create_task(self._run(self._generation, text))

    def clear(self) -> None:
        self.query = ""
        self._generation += 1
        self._cancel_pending()
        self._reset()

    def select(self, place: PlaceResult) -> PlaceResult:
        if self.on_select is not None:
            self.on_select(place)
        self.clear()
        return place

    async def wait(self) -> None:
        """Wait for the currently scheduled search (if any) to settle."""
        task = self._pending
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def _run(self, generation: int, text: str) -> None:
        await asyncio.sleep(self.debounce)
        if generation != self._generation:
            return
        self.state = SearchState.SEARCHING
        self.searches_issued += 1
        try:
            response = await self.provider.search(text)
        except Exception as exc:
            if generation != self._generation:
                return
            logger.error("Place search failed: %s", exc)
            self.results = []
            self.error = str(exc) or exc.__class__.__name__
            self.state = SearchState.ERROR
            return

        if generation != self._generation:
            # Superseded by newer input while in flight
            return
        self.results = list(response.results)
        self.error = None
        self.state = SearchState.RESULTS if self.results else SearchState.EMPTY

    def _cancel_pending(self) -> None:
        task, self._pending = self._pending, None
        if task is not None and not task.done():
            # A task past its debounce is left running; its generation check drops the result.
            if self.state == SearchState.DEBOUNCING:
                task.cancel()

    def _reset(self) -> None:
        self.state = SearchState.IDLE
        self.results = []
        self.error = None
