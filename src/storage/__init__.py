"""
Local storage package.
"""

from .database import (
    BlobStore,
    InMemoryBlobStore,
    SqliteBlobStore,
    StorageError,
    CorruptValueError,
    AI_SETTINGS_KEY,
    DAILY_TIP_KEY,
    STATS_KEY,
    TRENDS_KEY,
)
from .record_store import RecordStore

__all__ = [
    "BlobStore",
    "InMemoryBlobStore",
    "SqliteBlobStore",
    "StorageError",
    "CorruptValueError",
    "RecordStore",
    "AI_SETTINGS_KEY",
    "DAILY_TIP_KEY",
    "STATS_KEY",
    "TRENDS_KEY",
]
