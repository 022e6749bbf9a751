"""
Schemas - History and Suggestion Models

Pydantic models for the search history log and autocomplete suggestions.
"""

import logging
from enum import Enum
from pydantic import BaseModel, ValidationError

from maintenance_search.schemas.search import SearchCriteria

logger = logging.getLogger(__name__)


class SearchHistoryEntry(BaseModel):
    """Past search with its serialized criteria."""
    id: int
    query: str
    criteria_json: str = "{}"
    result_count: int
    timestamp: int

    @property
    def criteria(self) -> SearchCriteria:
        """Decoded criteria, or empty criteria when the JSON is unreadable."""
        try:
            return SearchCriteria.model_validate_json(self.criteria_json)
        except ValidationError:
            logger.warning(f"Unreadable criteria on history entry {self.id}")
            return SearchCriteria()


class SuggestionSource(str, Enum):
    ENTITY_NAME = "entity_name"
    ENTITY_TYPE = "entity_type"
    PERFORMER = "performer"
    LOCATION = "location"
    HISTORY = "history"


class SearchSuggestion(BaseModel):
    """
    Autocomplete candidate.

    Only ENTITY_NAME, ENTITY_TYPE and HISTORY are produced today; PERFORMER,
    LOCATION and occurrence_count are reserved for richer suggestion sources.
    """
    text: str
    source: SuggestionSource
    occurrence_count: int = 0
