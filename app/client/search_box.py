"""
Search box controller: debounced, cached lookups with keyboard navigation.

Runs on a single asyncio event loop. Every keystroke bumps a query token;
a fetch only applies its results if its token is still current, so late
responses for superseded queries are dropped.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from app.api.models.search import SearchResultItem, SearchResultSet
from app.client.cache import SearchCache

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
MIN_QUERY_LENGTH = 2

NAVIGATION_PATHS = {
    "document": "/documents/{id}",
    "quiz": "/quiz/{id}/result",
    # Flashcard results carry their document's id
    "flashcard": "/documents/{id}",
}


class SearchState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SHOWING = "showing"
    CLOSED = "closed"


def navigation_path(item: SearchResultItem) -> str:
    """Where selecting ``item`` should take the user."""
    return NAVIGATION_PATHS[item.category].format(id=item.id)


class SearchBoxController:
    """
    State machine behind the global search box.

    Args:
        fetch: Coroutine function performing the network search.
        navigate: Called with the target path when a result is chosen.
        cache: Result cache owned by this controller; a fresh one by default.
        debounce_seconds: Quiet period after the last keystroke before searching.
        min_query_length: Shorter (trimmed) queries never search.
    """

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[SearchResultSet]],
        navigate: Callable[[str], None],
        cache: Optional[SearchCache] = None,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        min_query_length: int = MIN_QUERY_LENGTH,
    ):
        self._fetch = fetch
        self._navigate = navigate
        self.cache = cache if cache is not None else SearchCache()
        self.debounce_seconds = debounce_seconds
        self.min_query_length = min_query_length

        self.state = SearchState.IDLE
        self.query = ""
        self.results: Optional[SearchResultSet] = None
        self.active_index = -1
        self.is_loading = False

        self._token = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Derived view state
    # ------------------------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self.state in (SearchState.PENDING, SearchState.SHOWING)

    @property
    def flat_results(self) -> list[SearchResultItem]:
        return self.results.flatten() if self.results else []

    @property
    def empty_message(self) -> Optional[str]:
        """Shown in place of results; identical for empty results and failures."""
        if self.state == SearchState.SHOWING and not self.flat_results:
            return f'No results found for "{self.query}"'
        return None

    # ------------------------------------------------------------------
    # Input events
    # ------------------------------------------------------------------

    def type(self, text: str) -> None:
        """The query text changed."""
        self.query = text
        self._cancel_timer()
        self._token += 1

        if len(text.strip()) < self.min_query_length:
            self.state = SearchState.IDLE
            self.results = None
            self.active_index = -1
            self.is_loading = False
            return

        self.state = SearchState.PENDING
        self.is_loading = True
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._fire, text, self._token)

    def press(self, key: str) -> None:
        """Keyboard handling: ArrowDown, ArrowUp, Enter, Escape."""
        total = len(self.flat_results)

        if self.state != SearchState.SHOWING or total == 0:
            if key == "Escape":
                self.close()
            return

        if key == "ArrowDown":
            self.active_index = (self.active_index + 1) % total
        elif key == "ArrowUp":
            self.active_index = total - 1 if self.active_index <= 0 else self.active_index - 1
        elif key == "Enter":
            if 0 <= self.active_index < total:
                self.select(self.active_index)
        elif key == "Escape":
            self.close()

    def hover(self, index: int) -> None:
        if 0 <= index < len(self.flat_results):
            self.active_index = index

    def select(self, index: int) -> Optional[str]:
        """Choose a result: navigate to it and reset the box. Out-of-range indexes are ignored."""
        if not 0 <= index < len(self.flat_results):
            return None
        item = self.flat_results[index]
        path = navigation_path(item)

        self._cancel_timer()
        self._token += 1
        self.state = SearchState.CLOSED
        self.query = ""
        self.results = None
        self.active_index = -1
        self.is_loading = False

        self._navigate(path)
        return path

    def dismiss(self) -> None:
        """Click outside the box."""
        self.close()

    def close(self) -> None:
        self.state = SearchState.CLOSED

    # ------------------------------------------------------------------
    # Debounced search
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, query: str, token: int) -> None:
        self._timer = None
        if token != self._token:
            return
        task = asyncio.get_running_loop().create_task(self._run(query, token))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, query: str, token: int) -> None:
        try:
            data = self.cache.lookup(query)
            if data is None:
                data = await self._fetch(query)
                self.cache.store(query, data)
        except Exception as e:
            logger.debug("Search for %r failed: %s", query, e)
            data = SearchResultSet()

        if token != self._token:
            logger.debug("Dropping superseded results for %r", query)
            return

        self.results = data
        self.active_index = -1
        self.is_loading = False
        if self.state == SearchState.PENDING:
            self.state = SearchState.SHOWING

    async def settle(self) -> None:
        """Wait until no debounce timer or fetch is outstanding."""
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.wait(set(self._tasks))
            else:
                await asyncio.sleep(self.debounce_seconds / 2)

    def cancel(self) -> None:
        """Stop the pending timer and any in-flight fetch, leaving the box idle."""
        self._cancel_timer()
        self._token += 1
        for task in list(self._tasks):
            task.cancel()
        if self.state == SearchState.PENDING:
            self.state = SearchState.IDLE
        self.is_loading = False
