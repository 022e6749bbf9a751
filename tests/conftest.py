"""
Shared fixtures: settings, sample storage and a deterministic history clock.
"""

import pytest

from maintenance_search.config import Settings
from maintenance_search.schemas.entities import Maintenance, Priority, Record, Status
from maintenance_search.services.history_service import HistoryService
from maintenance_search.storage.memory_storage import InMemoryStorage


def make_settings(
    debounce_ms: int = 20,
    max_entries: int = 100,
    history_path=None,
    cache_enabled: bool = True,
) -> Settings:
    """Settings with test-friendly overrides."""
    settings = Settings()
    return settings.model_copy(update={
        "search": settings.search.model_copy(update={"debounce_ms": debounce_ms}),
        "history": settings.history.model_copy(update={
            "max_entries": max_entries,
            "path": history_path,
        }),
        "cache": settings.cache.model_copy(update={"enabled": cache_enabled}),
    })


class FakeClock:
    """Millisecond clock that advances one second per reading."""

    def __init__(self, start: int = 1_000):
        self.now = start

    def __call__(self) -> int:
        self.now += 1_000
        return self.now


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def history(settings, clock) -> HistoryService:
    return HistoryService(settings, clock=clock)


@pytest.fixture
def storage() -> InMemoryStorage:
    """Three records and four maintenances costed 30, 75, 150 and 300."""
    store = InMemoryStorage()
    store.add_all([
        Record(
            id=1,
            name="Air Compressor",
            brand_model="Atlas Copco GA30",
            location="Workshop",
            description="Main shop compressor",
            category="Equipment",
            created_date=100,
        ),
        Record(
            id=2,
            name="Water Heater",
            brand_model="Rheem",
            location="Basement",
            description="Gas heater with filter",
            category="Appliance",
            created_date=200,
        ),
        Record(id=3, name="Router", brand_model="Cisco", category="Network", created_date=300),
    ])
    store.add_all([
        Maintenance(
            id=10,
            record_id=1,
            type="Filter Change",
            description="Replaced intake filter",
            cost=30.0,
            maintenance_date=1_000,
            performed_by="Ana",
            priority=Priority.HIGH,
            status=Status.COMPLETED,
        ),
        Maintenance(
            id=11,
            record_id=1,
            type="Oil Change",
            description="Compressor oil",
            cost=75.0,
            maintenance_date=2_000,
            performed_by="Luis",
            status=Status.PENDING,
        ),
        Maintenance(
            id=12,
            record_id=2,
            type="Inspection",
            description="Annual filter check",
            cost=150.0,
            maintenance_date=3_000,
            performed_by="Ana",
            status=Status.COMPLETED,
        ),
        Maintenance(
            id=13,
            record_id=2,
            type="Anode Replacement",
            description="Replaced anode rod",
            cost=300.0,
            maintenance_date=4_000,
            performed_by="Luis",
            location="Basement",
            priority=Priority.LOW,
            status=Status.IN_PROGRESS,
        ),
    ])
    return store
