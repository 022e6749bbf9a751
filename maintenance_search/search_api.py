"""
Maintenance Search - Search API

Entry points consumed by the UI layer.
"""

import logging
from typing import List, Optional

from maintenance_search.config import get_settings
from maintenance_search.pipeline.search_session import SearchSession
from maintenance_search.schemas.history import SearchHistoryEntry, SearchSuggestion
from maintenance_search.schemas.search import (
    FilterOptions,
    SearchCriteria,
    SearchQuery,
    SearchResult,
)
from maintenance_search.services import (
    FilterOptionsService,
    HistoryService,
    SearchService,
    SuggestionService,
)
from maintenance_search.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)


class SearchAPI:
    """Wires the search services over one storage collaborator."""

    def __init__(self, storage: BaseStorage, settings=None, history: HistoryService = None):
        self.settings = settings or get_settings()
        self.storage = storage
        self.history_service = history or HistoryService(self.settings)
        self.search_service = SearchService(storage, self.settings)
        self.suggestion_service = SuggestionService(
            storage, self.history_service, self.settings,
        )
        self.options_service = FilterOptionsService(storage, self.settings)

    async def search(
        self,
        query: str,
        criteria: Optional[SearchCriteria] = None,
        include_all_when_empty: bool = False,
    ) -> List[SearchResult]:
        """
        Run a search and record it in history in the background.

        Args:
            query: Free text
            criteria: Optional advanced criteria
            include_all_when_empty: Return everything for a blank query

        Returns:
            Ranked results

        Raises:
            StorageUnavailableError: If the storage collaborator fails
        """
        results = await self.search_service.search_query(SearchQuery(
            query=query,
            include_all_when_empty=include_all_when_empty,
            criteria=criteria,
        ))
        self.history_service.record_in_background(query, criteria, len(results))
        return results

    async def advanced_search(self, criteria: SearchCriteria) -> List[SearchResult]:
        return await self.search(criteria.query, criteria=criteria)

    async def suggestions(self, query: str) -> List[SearchSuggestion]:
        return await self.suggestion_service.get_suggestions(query)

    async def history(self, limit: Optional[int] = None) -> List[SearchHistoryEntry]:
        return await self.history_service.list(limit)

    async def delete_history_entry(self, entry_id: int) -> bool:
        return await self.history_service.delete(entry_id)

    async def clear_history(self) -> None:
        await self.history_service.clear_all()
        logger.info("Search history cleared")

    async def filter_options(self) -> FilterOptions:
        return await self.options_service.get_filter_options()

    def open_session(self) -> SearchSession:
        """New independent session sharing these services."""
        return SearchSession(
            self.search_service,
            self.suggestion_service,
            self.history_service,
            self.settings,
        )
