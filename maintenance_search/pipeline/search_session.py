"""
Pipeline - Search Session

Debounced, cancellable query pipeline for one search surface.

States: IDLE → SEARCHING → RESULTS | EMPTY | FAILED. Suggestions are
loaded alongside, independent of the search state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from maintenance_search.config import get_settings
from maintenance_search.errors import InvalidQueryError, SearchError
from maintenance_search.schemas.history import SearchSuggestion
from maintenance_search.schemas.search import SearchCriteria, SearchResult

logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESULTS = "results"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionSnapshot:
    """Immutable view of the session handed to listeners."""
    state: SearchState
    query: str
    results: List[SearchResult] = field(default_factory=list)
    suggestions: List[SearchSuggestion] = field(default_factory=list)
    error_message: Optional[str] = None
    sequence: int = 0


Listener = Callable[[SessionSnapshot], None]


class SearchSession:
    """
    Query controller for one UI surface.

    Every search takes a new sequence number; only the search holding
    the current number may write results. A newer keystroke cancels the
    pending debounce timer, and a newer search cancels the one in flight.
    """

    def __init__(
        self,
        search_service,
        suggestion_service,
        history_service,
        settings=None,
    ):
        self.settings = settings or get_settings()
        self.search_service = search_service
        self.suggestion_service = suggestion_service
        self.history_service = history_service

        self.debounce_seconds = self.settings.search.debounce_ms / 1000
        self.min_query_length = self.settings.search.min_query_length
        self.limit = self.settings.search.default_limit

        self.query = ""
        self.state = SearchState.IDLE
        self.results: List[SearchResult] = []
        self.suggestions: List[SearchSuggestion] = []
        self.error_message: Optional[str] = None

        self._sequence = 0
        self._last_delivered: Optional[str] = None
        self._debounce_task: Optional[asyncio.Task] = None
        self._search_task: Optional[asyncio.Task] = None
        self._suggestion_task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    # -- observation -------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self.state,
            query=self.query,
            results=list(self.results),
            suggestions=list(self.suggestions),
            error_message=self.error_message,
            sequence=self._sequence,
        )

    # -- input -------------------------------------------------------------

    def on_query_changed(self, text: str) -> None:
        """
        Handle a keystroke.

        Short queries clear everything at once. Longer ones schedule a
        search after the debounce window and load suggestions right away.
        """
        self.query = text

        if len(text) < self.min_query_length:
            self._reset(text)
            return

        self._cancel(self._debounce_task)
        self._debounce_task = asyncio.create_task(self._debounced(text))
        self._start_suggestions(text)

    def execute_search(self, text: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Search immediately, bypassing the debounce (explicit submit).

        Returns:
            The search task, or None when the query is too short
        """
        text = self.query if text is None else text
        self.query = text
        self._cancel(self._debounce_task)

        try:
            self._check_query(text)
        except InvalidQueryError as e:
            logger.debug(f"Ignoring submit: {e.message}")
            return None

        return self._start_search(
            text, lambda: self.search_service.search(text, limit=self.limit),
        )

    def apply_criteria(self, criteria: SearchCriteria) -> Optional[asyncio.Task]:
        """
        Run an advanced search through the same state machine.

        Empty criteria clear the results without a search.
        """
        self._cancel(self._debounce_task)
        self._last_delivered = None

        if criteria.is_empty():
            self._reset(self.query)
            return None

        return self._start_search(
            criteria.query,
            lambda: self.search_service.advanced_search(criteria),
            criteria=criteria,
        )

    def clear(self) -> None:
        """Drop the query, results, suggestions and any pending work."""
        self._reset("")

    async def join(self) -> None:
        """Wait until no debounce, search, suggestion or history work is pending."""
        while True:
            pending = [
                t for t in (self._debounce_task, self._search_task, self._suggestion_task)
                if t is not None and not t.done()
            ]
            if not pending:
                break
            await asyncio.gather(*pending, return_exceptions=True)
        await self.history_service.drain()

    def close(self) -> None:
        """Cancel all outstanding work."""
        self._cancel(self._debounce_task)
        self._cancel(self._search_task)
        self._cancel(self._suggestion_task)
        self._sequence += 1

    # -- internals ---------------------------------------------------------

    def _check_query(self, text: str) -> None:
        if len(text) < self.min_query_length:
            raise InvalidQueryError(text, self.min_query_length)

    def _reset(self, text: str) -> None:
        self.close()
        self._last_delivered = None
        self.query = text
        self.state = SearchState.IDLE
        self.results = []
        self.suggestions = []
        self.error_message = None
        self._notify()

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)

        # distinctUntilChanged: nothing new to show
        if text == self._last_delivered and self.state in (SearchState.RESULTS, SearchState.EMPTY):
            return

        self._start_search(
            text, lambda: self.search_service.search(text, limit=self.limit),
        )

    def _start_search(
        self,
        text: str,
        run: Callable[[], Awaitable[List[SearchResult]]],
        criteria: Optional[SearchCriteria] = None,
    ) -> asyncio.Task:
        self._cancel(self._search_task)
        self._sequence += 1
        sequence = self._sequence

        self.state = SearchState.SEARCHING
        self.error_message = None
        self._notify()

        self._search_task = asyncio.create_task(
            self._run_search(text, run, sequence, criteria)
        )
        return self._search_task

    async def _run_search(
        self,
        text: str,
        run: Callable[[], Awaitable[List[SearchResult]]],
        sequence: int,
        criteria: Optional[SearchCriteria],
    ) -> None:
        try:
            results = await run()
        except SearchError as e:
            if sequence != self._sequence:
                return
            logger.warning(f"Search '{text}' failed: {e.message}")
            self.state = SearchState.FAILED
            self.results = []
            self.error_message = e.message or "Search failed"
            self._notify()
            return

        if sequence != self._sequence:
            logger.debug(f"Discarding stale results for '{text}' (#{sequence})")
            return

        # Advanced results never stand in for the plain query's results
        self._last_delivered = text if criteria is None else None
        self.results = results
        self.state = SearchState.RESULTS if results else SearchState.EMPTY
        self._notify()

        if results:
            self.history_service.record_in_background(text, criteria, len(results))

    def _start_suggestions(self, text: str) -> None:
        self._cancel(self._suggestion_task)
        self._suggestion_task = asyncio.create_task(self._load_suggestions(text))

    async def _load_suggestions(self, text: str) -> None:
        try:
            suggestions = await self.suggestion_service.get_suggestions(text)
        except Exception as e:
            logger.warning(f"Suggestions for '{text}' failed: {e}")
            suggestions = []

        if text != self.query:
            return
        self.suggestions = suggestions
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Session listener failed: {e}")

    @staticmethod
    def _cancel(task: Optional[asyncio.Task]) -> None:
        if task is not None and not task.done():
            task.cancel()
