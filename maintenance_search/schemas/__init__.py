"""
Schemas Module - Pydantic Models

Data models for entities, search, history and suggestions.
"""

from maintenance_search.schemas.entities import (
    EntityType,
    Maintenance,
    Priority,
    Record,
    Status,
)
from maintenance_search.schemas.search import (
    AuxiliaryFilter,
    FilterOptions,
    SearchCriteria,
    SearchQuery,
    SearchResult,
    SortOption,
)
from maintenance_search.schemas.history import (
    SearchHistoryEntry,
    SearchSuggestion,
    SuggestionSource,
)

__all__ = [
    "EntityType",
    "Maintenance",
    "Priority",
    "Record",
    "Status",
    "AuxiliaryFilter",
    "FilterOptions",
    "SearchCriteria",
    "SearchQuery",
    "SearchResult",
    "SortOption",
    "SearchHistoryEntry",
    "SearchSuggestion",
    "SuggestionSource",
]
