"""
Shared fixtures.

The API module opens a SQLite store on import, so point it at a
throwaway file before any test imports it.
"""

import os
import tempfile
from datetime import date, timedelta

import pytest

os.environ.setdefault(
    "CARBONTRACKR_DB_PATH",
    os.path.join(tempfile.mkdtemp(prefix="carbontrackr-tests-"), "test.db"),
)

from storage.database import BlobStore, InMemoryBlobStore, StorageError


class FakeClock:
    """Callable returning a controllable 'today'."""

    def __init__(self, today: date):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1):
        self.today = self.today + timedelta(days=days)


class FailingBlobStore(BlobStore):
    """Every operation fails like an unavailable or full storage."""

    def get(self, key):
        raise StorageError("storage unavailable")

    def set(self, key, value):
        raise StorageError("quota exceeded")

    def remove(self, key):
        raise StorageError("storage unavailable")


class FlakyReadStore(InMemoryBlobStore):
    """Reads fail for a while (e.g. a locked database); writes succeed."""

    def __init__(self):
        super().__init__()
        self.failing_reads = 0

    def fail_next_reads(self, count: int = 1):
        self.failing_reads = count

    def get(self, key):
        if self.failing_reads > 0:
            self.failing_reads -= 1
            raise StorageError("database is locked")
        return super().get(key)


@pytest.fixture
def clock():
    return FakeClock(date(2026, 3, 5))


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def failing_store():
    return FailingBlobStore()


@pytest.fixture
def flaky_store():
    return FlakyReadStore()
