"""
Services - Search Service

Fans a query out across records and maintenances, merges, ranks and filters.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from maintenance_search.config import get_settings
from maintenance_search.errors import StorageUnavailableError
from maintenance_search.pipeline.relevance_scorer import RelevanceScorer
from maintenance_search.schemas.entities import (
    SEARCH_FIELDS,
    Entity,
    EntityType,
    Maintenance,
    Record,
)
from maintenance_search.schemas.search import (
    SearchCriteria,
    SearchQuery,
    SearchResult,
    SortOption,
)
from maintenance_search.services.filter_service import FilterService
from maintenance_search.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)

# Relevance given to hits that come from a filter rather than a text match
FILTER_ONLY_RELEVANCE = 1.0

ALL_ENTITY_TYPES = (EntityType.RECORD, EntityType.MAINTENANCE)


def to_search_result(entity: Entity) -> SearchResult:
    """Map a raw storage row to an unscored result."""
    if isinstance(entity, Record):
        return SearchResult(
            entity_type=EntityType.RECORD,
            id=entity.id,
            title=entity.name,
            subtitle=entity.brand_model or "",
            description=entity.description or "",
            record_id=entity.id,
            date=entity.created_date,
        )
    elif isinstance(entity, Maintenance):
        return SearchResult(
            entity_type=EntityType.MAINTENANCE,
            id=entity.id,
            title=entity.type,
            subtitle=f"Record: {entity.record_name}" if entity.record_name else "",
            description=entity.description,
            record_id=entity.record_id,
            cost=entity.cost,
            date=entity.maintenance_date,
        )
    else:
        raise ValueError(f"Unknown entity: {type(entity).__name__}")


def sort_results(results: List[SearchResult], sort_by: SortOption) -> List[SearchResult]:
    """Stable sort; results missing the sort field go last."""
    if sort_by == SortOption.RELEVANCE:
        return sorted(results, key=lambda r: r.relevance_score, reverse=True)
    elif sort_by == SortOption.NAME:
        return sorted(results, key=lambda r: r.title.lower())
    elif sort_by in (SortOption.DATE_NEWEST, SortOption.DATE_OLDEST):
        present = [r for r in results if r.date is not None]
        missing = [r for r in results if r.date is None]
        present.sort(key=lambda r: r.date, reverse=sort_by == SortOption.DATE_NEWEST)
        return present + missing
    elif sort_by in (SortOption.COST_HIGH, SortOption.COST_LOW):
        present = [r for r in results if r.cost is not None]
        missing = [r for r in results if r.cost is None]
        present.sort(key=lambda r: r.cost, reverse=sort_by == SortOption.COST_HIGH)
        return present + missing
    else:
        raise ValueError(f"Unknown sort option: {sort_by}")


class SearchService:
    """Full-text and advanced search over the storage collaborator."""

    def __init__(self, storage: BaseStorage, settings=None):
        self.settings = settings or get_settings()
        self.storage = storage
        self.scorer = RelevanceScorer()
        self.filters = FilterService(storage)

    async def execute(
        self,
        query: str,
        scope: Sequence[EntityType] = ALL_ENTITY_TYPES,
        limit: Optional[int] = None,
    ) -> List[SearchResult]:
        """
        Issue one substring request per entity type and merge the hits.

        Records come before maintenances; a repeated identity keeps its
        first occurrence. Any storage failure fails the whole search.

        Args:
            query: Substring to look for
            scope: Entity types to search
            limit: Per-type row limit

        Returns:
            Unscored, deduplicated candidates

        Raises:
            StorageUnavailableError: If any storage request fails
        """
        if limit is None:
            limit = self.settings.search.default_limit

        try:
            batches = await asyncio.gather(*[
                self.storage.find_by_fields_containing(
                    entity_type, query, SEARCH_FIELDS[entity_type], limit,
                )
                for entity_type in scope
            ])
        except Exception as e:
            logger.error(f"Search for '{query}' failed: {e}")
            raise StorageUnavailableError(
                f"Search failed: {e}", operation="find_by_fields_containing",
            ) from e

        seen = set()
        candidates = []
        for batch in batches:
            for entity in batch:
                result = to_search_result(entity)
                if result.key in seen:
                    continue
                seen.add(result.key)
                candidates.append(result)

        return candidates

    async def search(
        self,
        query: str,
        scope: Sequence[EntityType] = ALL_ENTITY_TYPES,
        limit: Optional[int] = None,
        include_all_when_empty: bool = False,
    ) -> List[SearchResult]:
        """
        Ranked full-text search.

        A blank query returns nothing without touching storage, unless
        include_all_when_empty is set, in which case every entity in scope
        is returned with relevance 1.0.
        """
        if not query.strip():
            if not include_all_when_empty:
                return []
            candidates = await self.execute("", scope, limit)
            return [
                r.model_copy(update={"relevance_score": FILTER_ONLY_RELEVANCE})
                for r in candidates
            ]

        candidates = await self.execute(query, scope, limit)
        ranked = self.scorer.rank(query, candidates)
        logger.info(f"Search '{query}': {len(ranked)} results")
        return ranked

    async def search_query(self, search_query: SearchQuery) -> List[SearchResult]:
        """Dispatch a SearchQuery to the plain or advanced path."""
        if search_query.criteria is not None:
            criteria = search_query.criteria
            if not criteria.query and search_query.query:
                criteria = criteria.model_copy(update={"query": search_query.query})
            return await self.advanced_search(criteria)

        return await self.search(
            search_query.query,
            include_all_when_empty=search_query.include_all_when_empty,
        )

    async def advanced_search(self, criteria: SearchCriteria) -> List[SearchResult]:
        """
        Multi-criterion search.

        Flow:
        1. Empty criteria → no results, no storage call
        2. Base list: ranked text search, or the full range/filter set at relevance 1.0
        3. Cost and date ranges intersect (maintenances only)
        4. Each auxiliary filter intersects in turn
        5. Sort by criteria.sort_by; blank-query results are then truncated to the limit

        Args:
            criteria: Advanced search criteria

        Returns:
            Filtered, sorted results
        """
        if criteria.is_empty():
            return []

        scope = criteria.scope()
        if not scope:
            return []

        query = criteria.query.strip()
        ranges = []
        if criteria.has_cost_range():
            ranges.append(("cost", criteria.min_cost, criteria.max_cost))
        if criteria.has_date_range():
            ranges.append(("maintenance_date", criteria.start_date, criteria.end_date))

        filters = list(criteria.filters)

        # Blank-query bases are full matching sets; the limit applies last
        if query:
            results = await self.search(query, scope, criteria.limit)
        elif ranges:
            if EntityType.MAINTENANCE not in scope:
                return []
            field_name, low, high = ranges.pop(0)
            matching = await self.filters.fetch_range(field_name, low, high)
            results = self._filter_only(matching)
        else:
            first = filters.pop(0)
            if first.entity_type not in scope:
                return []
            matching = await self.filters.fetch_matching(first)
            results = self._filter_only(matching)

        for field_name, low, high in ranges:
            results = await self.filters.apply_range(results, field_name, low, high)

        for aux_filter in filters:
            results = await self.filters.apply(results, aux_filter)

        results = sort_results(results, criteria.sort_by)
        if not query:
            results = results[:criteria.limit]
        logger.info(f"Advanced search '{query}': {len(results)} results")
        return results

    @staticmethod
    def _filter_only(matching: List[Entity]) -> List[SearchResult]:
        return [
            to_search_result(e).model_copy(
                update={"relevance_score": FILTER_ONLY_RELEVANCE}
            )
            for e in matching
        ]
