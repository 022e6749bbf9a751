"""
Schemas - Search Models

Pydantic models for search queries, criteria and results.
"""

from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Tuple

from maintenance_search.schemas.entities import EntityType


class SortOption(str, Enum):
    """Ordering applied to advanced search results."""
    RELEVANCE = "relevance"
    NAME = "name"
    DATE_NEWEST = "date_newest"
    DATE_OLDEST = "date_oldest"
    COST_HIGH = "cost_high"
    COST_LOW = "cost_low"


FilterField = Literal["type", "status", "priority", "performed_by", "location", "category"]

# Entity type owning each auxiliary filter field
FILTER_FIELD_ENTITY = {
    "type": EntityType.MAINTENANCE,
    "status": EntityType.MAINTENANCE,
    "priority": EntityType.MAINTENANCE,
    "performed_by": EntityType.MAINTENANCE,
    "location": EntityType.MAINTENANCE,
    "category": EntityType.RECORD,
}


class AuxiliaryFilter(BaseModel):
    """Exact-match filter; an entity matches when its field equals any value."""
    field: FilterField
    values: List[str] = Field(min_length=1)

    @property
    def entity_type(self) -> EntityType:
        return FILTER_FIELD_ENTITY[self.field]


class SearchCriteria(BaseModel):
    """Advanced search criteria."""
    query: str = ""
    min_cost: Optional[float] = None
    max_cost: Optional[float] = None
    start_date: Optional[int] = None
    end_date: Optional[int] = None
    search_in_records: bool = True
    search_in_maintenances: bool = True
    filters: List[AuxiliaryFilter] = []
    sort_by: SortOption = SortOption.RELEVANCE
    limit: int = Field(default=100, ge=1)

    def has_cost_range(self) -> bool:
        return self.min_cost is not None or self.max_cost is not None

    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None

    def has_filters(self) -> bool:
        return self.has_cost_range() or self.has_date_range() or bool(self.filters)

    def is_empty(self) -> bool:
        return not self.query.strip() and not self.has_filters()

    def scope(self) -> List[EntityType]:
        """Entity types enabled for this search."""
        scope = []
        if self.search_in_records:
            scope.append(EntityType.RECORD)
        if self.search_in_maintenances:
            scope.append(EntityType.MAINTENANCE)
        return scope


class SearchQuery(BaseModel):
    """Free-text query with optional advanced criteria."""
    query: str = ""
    include_all_when_empty: bool = False
    criteria: Optional[SearchCriteria] = None


class SearchResult(BaseModel):
    """Single ranked hit; identity is (entity_type, id)."""
    entity_type: EntityType
    id: int
    title: str
    subtitle: str = ""
    description: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0)
    record_id: Optional[int] = None
    cost: Optional[float] = None
    date: Optional[int] = None

    @property
    def key(self) -> Tuple[EntityType, int]:
        return (self.entity_type, self.id)


class FilterOptions(BaseModel):
    """Distinct values available to the advanced search filters."""
    maintenance_types: List[str] = []
    performers: List[str] = []
    locations: List[str] = []
    categories: List[str] = []
