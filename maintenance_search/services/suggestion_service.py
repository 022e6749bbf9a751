"""
Services - Suggestion Service

Autocomplete candidates from entity names/types and recent history.
"""

import asyncio
import logging
from typing import List

from maintenance_search.config import get_settings
from maintenance_search.schemas.entities import EntityType
from maintenance_search.schemas.history import SearchSuggestion, SuggestionSource
from maintenance_search.services.history_service import HistoryService
from maintenance_search.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)


class SuggestionService:
    """Builds bounded, deduplicated suggestion lists."""

    def __init__(self, storage: BaseStorage, history: HistoryService, settings=None):
        self.settings = settings or get_settings()
        self.storage = storage
        self.history = history

    async def get_suggestions(self, query: str) -> List[SearchSuggestion]:
        """
        Suggestions for a query prefix.

        Entity suggestions come first, then history queries. A text that
        appears twice keeps its first (entity) occurrence. Lookup failures
        are logged and yield an empty list.

        Args:
            query: Case-sensitive prefix

        Returns:
            At most SUGGESTION_MAX_RESULTS suggestions
        """
        if not query:
            return []

        try:
            entity_suggestions, history_queries = await asyncio.gather(
                self._entity_suggestions(query),
                self.history.prefix_queries(
                    query, limit=self.settings.suggestion.history_limit,
                ),
            )
        except Exception as e:
            logger.warning(f"Suggestions for '{query}' failed: {e}")
            return []

        candidates = entity_suggestions + [
            SearchSuggestion(text=text, source=SuggestionSource.HISTORY)
            for text in history_queries
        ]

        seen = set()
        suggestions = []
        for suggestion in candidates:
            if suggestion.text in seen:
                continue
            seen.add(suggestion.text)
            suggestions.append(suggestion)

        return suggestions[:self.settings.suggestion.max_results]

    async def _entity_suggestions(self, prefix: str) -> List[SearchSuggestion]:
        """Record names and maintenance types with the prefix, sorted, bounded."""
        names, types = await asyncio.gather(
            self.storage.list_distinct_values(EntityType.RECORD, "name", prefix),
            self.storage.list_distinct_values(EntityType.MAINTENANCE, "type", prefix),
        )

        merged = [
            SearchSuggestion(text=text, source=SuggestionSource.ENTITY_NAME)
            for text in names
        ] + [
            SearchSuggestion(text=text, source=SuggestionSource.ENTITY_TYPE)
            for text in types
        ]
        # Stable: a name and a type with the same text keep the name first
        merged.sort(key=lambda s: s.text)

        return merged[:self.settings.suggestion.entity_limit]
