from datetime import UTC, datetime

import pytest

from snapshot_scheduler.adapters.clock import FixedClock
from snapshot_scheduler.adapters.local_storage import InMemoryBlobStore
from snapshot_scheduler.rules.models import Rules

NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def rules() -> Rules:
    """Default rules (same values as the shipped rules.yaml)."""
    return Rules()
