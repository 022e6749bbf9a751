"""
Services - History Service

Bounded search history log with eviction and optional JSON persistence.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

from pydantic import TypeAdapter, ValidationError

from maintenance_search.config import get_settings
from maintenance_search.errors import HistoryWriteError
from maintenance_search.schemas.history import SearchHistoryEntry
from maintenance_search.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)

_entries_adapter = TypeAdapter(List[SearchHistoryEntry])


def _now_millis() -> int:
    return int(time.time() * 1000)


class HistoryService:
    """
    Append-with-eviction log of past searches.

    Reads are ordered by timestamp descending (later inserts win ties).
    Every read and mutation runs under one lock so the retention cap
    stays exact when several background writes overlap.
    """

    def __init__(self, settings=None, clock: Optional[Callable[[], int]] = None):
        self.settings = settings or get_settings()
        self.max_entries = self.settings.history.max_entries
        self.path = self.settings.history.path
        self._clock = clock or _now_millis
        self._entries: Dict[int, SearchHistoryEntry] = {}
        self._sequence: Dict[int, int] = {}
        self._next_id = 1
        self._counter = 0
        self._loaded = False
        self._lock = asyncio.Lock()
        self._background: Set[asyncio.Task] = set()

    @staticmethod
    def should_record(
        query: str,
        criteria: Optional[SearchCriteria],
        result_count: int,
    ) -> bool:
        """Only non-empty searches that found something are kept."""
        if result_count <= 0:
            return False
        if query.strip():
            return True
        return criteria is not None and not criteria.is_empty()

    async def record(
        self,
        query: str,
        criteria: Optional[SearchCriteria] = None,
        result_count: int = 0,
        entry_id: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> SearchHistoryEntry:
        """
        Insert (or replace by id) a history entry.

        A new entry that would push the log past max_entries first evicts
        the oldest entries so exactly max_entries remain afterwards.

        Args:
            query: Query text
            criteria: Criteria used for the search
            result_count: Number of results delivered
            entry_id: Existing id to replace, or None for a new entry
            timestamp: Epoch millis, defaults to now

        Returns:
            The stored entry

        Raises:
            HistoryWriteError: If the log could not be persisted
        """
        criteria = criteria or SearchCriteria(query=query)

        async with self._lock:
            await self._ensure_loaded()
            backup = self._backup()

            if entry_id is None or entry_id not in self._entries:
                self._evict(keep=self.max_entries - 1)
            if entry_id is None:
                entry_id = self._next_id
            self._next_id = max(self._next_id, entry_id + 1)

            entry = SearchHistoryEntry(
                id=entry_id,
                query=query,
                criteria_json=criteria.model_dump_json(),
                result_count=result_count,
                timestamp=timestamp if timestamp is not None else self._clock(),
            )
            self._put(entry)
            await self._persist(backup)

        logger.debug(f"Recorded history entry {entry.id} for '{query}'")
        return entry

    def record_in_background(
        self,
        query: str,
        criteria: Optional[SearchCriteria],
        result_count: int,
    ) -> Optional[asyncio.Task]:
        """
        Fire-and-forget recording; failures are logged, never raised.

        Returns:
            The scheduled task, or None when the search is not worth keeping
        """
        if not self.should_record(query, criteria, result_count):
            return None

        task = asyncio.create_task(self._record_quietly(query, criteria, result_count))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def drain(self) -> None:
        """Wait for outstanding background writes."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    async def list(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        """Most recent entries first."""
        limit = self.settings.history.default_limit if limit is None else limit
        async with self._lock:
            await self._ensure_loaded()
            return self._ordered()[:limit]

    async def prefix_queries(self, prefix: str, limit: int = 5) -> List[str]:
        """
        Distinct query texts starting with prefix, most recent first.

        Args:
            prefix: Case-sensitive prefix
            limit: Maximum texts to return
        """
        async with self._lock:
            await self._ensure_loaded()
            queries = []
            for entry in self._ordered():
                if len(queries) >= limit:
                    break
                if entry.query.startswith(prefix) and entry.query not in queries:
                    queries.append(entry.query)
            return queries

    async def delete(self, entry_id: int) -> bool:
        """Delete one entry. Returns True if it existed."""
        async with self._lock:
            await self._ensure_loaded()
            if entry_id not in self._entries:
                return False
            backup = self._backup()
            del self._entries[entry_id]
            del self._sequence[entry_id]
            await self._persist(backup)
            return True

    async def clear_all(self) -> None:
        """Remove every entry."""
        async with self._lock:
            await self._ensure_loaded()
            backup = self._backup()
            self._entries.clear()
            self._sequence.clear()
            await self._persist(backup)

    async def count(self) -> int:
        async with self._lock:
            await self._ensure_loaded()
            return len(self._entries)

    async def _record_quietly(
        self,
        query: str,
        criteria: Optional[SearchCriteria],
        result_count: int,
    ) -> None:
        try:
            await self.record(query, criteria, result_count)
        except HistoryWriteError as e:
            logger.warning(f"History write failed for '{query}': {e.message}")
        except Exception as e:
            logger.error(f"Unexpected history error for '{query}': {e}")

    def _put(self, entry: SearchHistoryEntry) -> None:
        self._counter += 1
        self._entries[entry.id] = entry
        self._sequence[entry.id] = self._counter

    def _ordered(self) -> List[SearchHistoryEntry]:
        return sorted(
            self._entries.values(),
            key=lambda e: (e.timestamp, self._sequence[e.id]),
            reverse=True,
        )

    def _evict(self, keep: int) -> None:
        """Keep only the `keep` most recent entries."""
        if len(self._entries) <= keep:
            return

        evicted = self._ordered()[max(keep, 0):]
        for entry in evicted:
            del self._entries[entry.id]
            del self._sequence[entry.id]
        logger.info(f"Evicted {len(evicted)} history entries (cap {self.max_entries})")

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True

        if self.path is None or not self.path.exists():
            return

        try:
            raw = await asyncio.to_thread(self.path.read_bytes)
            entries = _entries_adapter.validate_json(raw)
        except (OSError, ValidationError) as e:
            logger.error(f"Could not load search history from {self.path}: {e}")
            return

        # Oldest first so later inserts win timestamp ties
        for entry in sorted(entries, key=lambda e: e.timestamp):
            self._put(entry)
            self._next_id = max(self._next_id, entry.id + 1)
        logger.info(f"Loaded {len(entries)} history entries from {self.path}")

    def _backup(self) -> Tuple[Dict[int, SearchHistoryEntry], Dict[int, int], int, int]:
        return dict(self._entries), dict(self._sequence), self._next_id, self._counter

    async def _persist(self, backup) -> None:
        """Write the log; on failure restore the in-memory state from backup."""
        if self.path is None:
            return

        payload = _entries_adapter.dump_json(self._ordered())
        try:
            await asyncio.to_thread(self.path.write_bytes, payload)
        except OSError as e:
            self._entries, self._sequence, self._next_id, self._counter = backup
            raise HistoryWriteError(f"Could not write {self.path}: {e}") from e
