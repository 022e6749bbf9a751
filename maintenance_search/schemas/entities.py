"""
Schemas - Entity Models

Pydantic models for the rows handed over by the storage collaborator.
"""

from enum import Enum
from pydantic import BaseModel
from typing import Optional, Union


class EntityType(str, Enum):
    """Searchable entity kinds."""
    RECORD = "record"
    MAINTENANCE = "maintenance"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Status(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"


class Record(BaseModel):
    """Tracked asset (appliance, vehicle, equipment)."""
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    brand_model: Optional[str] = None
    serial_number: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_date: int = 0


class Maintenance(BaseModel):
    """Maintenance entry performed on a record."""
    id: int
    record_id: int
    record_name: Optional[str] = None
    maintenance_date: int = 0
    type: str
    description: str = ""
    cost: Optional[float] = None
    currency: str = "USD"
    performed_by: Optional[str] = None
    location: Optional[str] = None
    parts_replaced: Optional[str] = None
    notes: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    status: Status = Status.COMPLETED


Entity = Union[Record, Maintenance]


# Fields scanned by full-text search, per entity type
SEARCH_FIELDS = {
    EntityType.RECORD: ["name", "brand_model", "serial_number", "location", "description"],
    EntityType.MAINTENANCE: [
        "description", "type", "performed_by", "location", "parts_replaced", "notes",
    ],
}


def entity_type_of(entity: Entity) -> EntityType:
    """Tag a raw row with its entity type."""
    if isinstance(entity, Record):
        return EntityType.RECORD
    elif isinstance(entity, Maintenance):
        return EntityType.MAINTENANCE
    else:
        raise ValueError(f"Unknown entity: {type(entity).__name__}")
