"""
Services Module - Business Logic Layer

Provides services for search, filtering, suggestions, history and caching.
"""

from maintenance_search.services.search_service import SearchService
from maintenance_search.services.filter_service import FilterService
from maintenance_search.services.suggestion_service import SuggestionService
from maintenance_search.services.history_service import HistoryService
from maintenance_search.services.options_service import FilterOptionsService
from maintenance_search.services.cache_service import CacheService

__all__ = [
    "SearchService",
    "FilterService",
    "SuggestionService",
    "HistoryService",
    "FilterOptionsService",
    "CacheService",
]
