"""
Storage - Base Storage

Abstract base class for the record/maintenance storage collaborator.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from maintenance_search.schemas.entities import Entity, EntityType


class BaseStorage(ABC):
    """Query primitives the search pipeline consumes."""

    @abstractmethod
    async def find_by_fields_containing(
        self,
        entity_type: EntityType,
        substring: str,
        fields: List[str],
        limit: int,
    ) -> List[Entity]:
        """
        Case-insensitive substring match across named fields.

        Args:
            entity_type: Entity kind to search
            substring: Text to look for (empty matches everything)
            fields: Field names to scan
            limit: Maximum rows to return

        Returns:
            Matching rows in storage order
        """
        pass

    @abstractmethod
    async def find_by_exact_field(
        self,
        entity_type: EntityType,
        field_name: str,
        value: str,
    ) -> List[Entity]:
        """
        Every row whose field equals value.

        Args:
            entity_type: Entity kind to search
            field_name: Field to compare
            value: Expected value

        Returns:
            Matching rows
        """
        pass

    @abstractmethod
    async def list_distinct_values(
        self,
        entity_type: EntityType,
        field_name: str,
        prefix: Optional[str] = None,
    ) -> List[str]:
        """
        Distinct non-empty values of a field, sorted ascending.

        Args:
            entity_type: Entity kind to scan
            field_name: Field to collect
            prefix: Optional case-sensitive prefix

        Returns:
            Sorted distinct values
        """
        pass

    @abstractmethod
    async def find_in_range(
        self,
        entity_type: EntityType,
        field_name: str,
        low: Optional[float] = None,
        high: Optional[float] = None,
    ) -> List[Entity]:
        """
        Rows whose numeric field lies within [low, high].

        Either bound may be None (open). Rows with no value never match.
        """
        pass
