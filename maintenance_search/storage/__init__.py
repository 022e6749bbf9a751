"""
Storage Module - Collaborator Abstraction Layer

Contract for the record/maintenance store plus an in-memory implementation.
"""

from maintenance_search.storage.base_storage import BaseStorage
from maintenance_search.storage.memory_storage import InMemoryStorage

__all__ = [
    "BaseStorage",
    "InMemoryStorage",
]
