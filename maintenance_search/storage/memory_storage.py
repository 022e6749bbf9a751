"""
Storage - In-Memory Storage

Dict-backed storage collaborator for embedding and tests.
"""

from enum import Enum
from typing import Dict, List, Optional

from maintenance_search.schemas.entities import (
    Entity,
    EntityType,
    Maintenance,
    Record,
    entity_type_of,
)
from maintenance_search.storage.base_storage import BaseStorage


def _field_text(entity: Entity, field_name: str) -> Optional[str]:
    value = getattr(entity, field_name, None)
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    return str(value)


class InMemoryStorage(BaseStorage):
    """Keeps records and maintenances in insertion order."""

    def __init__(self):
        self._rows: Dict[EntityType, Dict[int, Entity]] = {
            EntityType.RECORD: {},
            EntityType.MAINTENANCE: {},
        }

    def add(self, entity: Entity) -> Entity:
        """Insert or replace a row, denormalizing the record name onto maintenances."""
        entity_type = entity_type_of(entity)
        if isinstance(entity, Maintenance) and entity.record_name is None:
            record = self._rows[EntityType.RECORD].get(entity.record_id)
            if record is not None:
                entity = entity.model_copy(update={"record_name": record.name})
        self._rows[entity_type][entity.id] = entity
        return entity

    def add_all(self, entities: List[Entity]) -> None:
        for entity in entities:
            self.add(entity)

    def remove(self, entity_type: EntityType, entity_id: int) -> None:
        self._rows[entity_type].pop(entity_id, None)

    def _active_rows(self, entity_type: EntityType) -> List[Entity]:
        rows = list(self._rows[entity_type].values())
        if entity_type == EntityType.RECORD:
            rows = [r for r in rows if isinstance(r, Record) and r.is_active]
        return rows

    async def find_by_fields_containing(
        self,
        entity_type: EntityType,
        substring: str,
        fields: List[str],
        limit: int,
    ) -> List[Entity]:
        needle = substring.lower()
        matches = []
        for row in self._active_rows(entity_type):
            if len(matches) >= limit:
                break
            for field_name in fields:
                text = _field_text(row, field_name)
                if text is not None and needle in text.lower():
                    matches.append(row)
                    break
        return matches

    async def find_by_exact_field(
        self,
        entity_type: EntityType,
        field_name: str,
        value: str,
    ) -> List[Entity]:
        return [
            row for row in self._active_rows(entity_type)
            if _field_text(row, field_name) == value
        ]

    async def list_distinct_values(
        self,
        entity_type: EntityType,
        field_name: str,
        prefix: Optional[str] = None,
    ) -> List[str]:
        values = set()
        for row in self._active_rows(entity_type):
            text = _field_text(row, field_name)
            if not text:
                continue
            if prefix is not None and not text.startswith(prefix):
                continue
            values.add(text)
        return sorted(values)

    async def find_in_range(
        self,
        entity_type: EntityType,
        field_name: str,
        low: Optional[float] = None,
        high: Optional[float] = None,
    ) -> List[Entity]:
        matches = []
        for row in self._active_rows(entity_type):
            value = getattr(row, field_name, None)
            if value is None:
                continue
            if low is not None and value < low:
                continue
            if high is not None and value > high:
                continue
            matches.append(row)
        return matches
