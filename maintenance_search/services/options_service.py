"""
Services - Filter Options Service

Distinct values offered by the advanced search filters, cached with a TTL.
"""

import asyncio
import logging

from maintenance_search.config import get_settings
from maintenance_search.errors import StorageUnavailableError
from maintenance_search.schemas.entities import EntityType
from maintenance_search.schemas.search import FilterOptions
from maintenance_search.services.cache_service import CacheService
from maintenance_search.storage.base_storage import BaseStorage

logger = logging.getLogger(__name__)

CACHE_KEY = "options:filters"


class FilterOptionsService:
    """Collects maintenance types, performers, locations and categories."""

    def __init__(self, storage: BaseStorage, settings=None, cache: CacheService = None):
        self.settings = settings or get_settings()
        self.storage = storage
        self.cache = cache or CacheService(self.settings)

    async def get_filter_options(self) -> FilterOptions:
        """
        Get filter options, served from cache while fresh.

        Raises:
            StorageUnavailableError: If the lookups fail on a cache miss
        """
        cached = self.cache.get(CACHE_KEY)
        if cached is not None:
            return cached.model_copy(deep=True)

        try:
            types, performers, locations, categories = await asyncio.gather(
                self.storage.list_distinct_values(EntityType.MAINTENANCE, "type"),
                self.storage.list_distinct_values(EntityType.MAINTENANCE, "performed_by"),
                self.storage.list_distinct_values(EntityType.MAINTENANCE, "location"),
                self.storage.list_distinct_values(EntityType.RECORD, "category"),
            )
        except Exception as e:
            raise StorageUnavailableError(
                f"Filter options lookup failed: {e}", operation="list_distinct_values",
            ) from e

        options = FilterOptions(
            maintenance_types=types,
            performers=performers,
            locations=locations,
            categories=categories,
        )
        self.cache.set(CACHE_KEY, options)
        logger.debug(f"Cached filter options: {len(types)} types, {len(performers)} performers")
        return options.model_copy(deep=True)

    def invalidate(self) -> None:
        """Drop cached options after the underlying data changes."""
        self.cache.delete(CACHE_KEY)
