"""
Services - Filter Service

Narrows an already-ranked result list by identity-set intersection.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Set, Tuple

from maintenance_search.errors import StorageUnavailableError
from maintenance_search.schemas.entities import Entity, EntityType, entity_type_of
from maintenance_search.schemas.search import AuxiliaryFilter, SearchResult
from maintenance_search.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)

Identity = Tuple[EntityType, int]


class FilterService:
    """
    Applies auxiliary filters to a ranked base list.

    Each filter fetches its full matching set from storage and keeps the
    base results whose identity is in that set. Base order is preserved,
    and an empty matching set yields an empty list.
    """

    def __init__(self, storage: BaseStorage):
        self.storage = storage

    @staticmethod
    def intersect(
        base: List[SearchResult],
        matching: Iterable[Entity],
    ) -> List[SearchResult]:
        """Keep the base results whose (entity_type, id) appears in matching."""
        allowed: Set[Identity] = {(entity_type_of(e), e.id) for e in matching}
        return [r for r in base if r.key in allowed]

    async def apply(
        self,
        base: List[SearchResult],
        aux_filter: AuxiliaryFilter,
    ) -> List[SearchResult]:
        """
        Intersect base with every entity whose field equals any filter value.

        Args:
            base: Ranked results
            aux_filter: Field and accepted values

        Returns:
            Filtered results in base order
        """
        matching = await self.fetch_matching(aux_filter)
        filtered = self.intersect(base, matching)
        logger.debug(
            f"Filter {aux_filter.field}={aux_filter.values}: "
            f"{len(base)} -> {len(filtered)}"
        )
        return filtered

    async def fetch_matching(self, aux_filter: AuxiliaryFilter) -> List[Entity]:
        """Every entity whose field equals one of the filter values, unbounded."""
        try:
            groups = await asyncio.gather(*[
                self.storage.find_by_exact_field(
                    aux_filter.entity_type, aux_filter.field, value,
                )
                for value in aux_filter.values
            ])
        except Exception as e:
            raise StorageUnavailableError(
                f"Filter lookup failed: {e}", operation="find_by_exact_field",
            ) from e

        seen: Set[int] = set()
        matching = []
        for group in groups:
            for entity in group:
                if entity.id in seen:
                    continue
                seen.add(entity.id)
                matching.append(entity)
        return matching

    async def apply_range(
        self,
        base: List[SearchResult],
        field_name: str,
        low: Optional[float] = None,
        high: Optional[float] = None,
    ) -> List[SearchResult]:
        """Intersect base with the maintenances whose field lies in [low, high]."""
        matching = await self.fetch_range(field_name, low, high)
        return self.intersect(base, matching)

    async def fetch_range(
        self,
        field_name: str,
        low: Optional[float] = None,
        high: Optional[float] = None,
    ) -> List[Entity]:
        try:
            return await self.storage.find_in_range(
                EntityType.MAINTENANCE, field_name, low, high,
            )
        except Exception as e:
            raise StorageUnavailableError(
                f"Range lookup failed: {e}", operation="find_in_range",
            ) from e
