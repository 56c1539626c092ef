"""
Daily Record Store

Upsert-by-date history of daily emission records with a trailing
90-day retention window.

Persistence failures never reach the caller: they are logged and
the operation continues on in-memory data for that call.
"""

import logging
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from models.footprint import ActivityInput
from models.tracking import DailyRecord
from storage.database import BlobStore, CorruptValueError, StorageError, TRENDS_KEY

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Repository for daily emission records.

    One record per ISO date. Writing a date that already exists
    replaces the stored record.
    """

    RETENTION_DAYS = 90

    def __init__(
        self,
        blob_store: BlobStore,
        clock: Callable[[], date] = date.today,
    ):
        """
        Initialize Record Store.

        Args:
            blob_store: Backing key-value store
            clock: Returns the current local date (injectable for tests)
        """
        self.blob_store = blob_store
        self.clock = clock

    def get_all(self) -> List[DailyRecord]:
        """Get all records, newest first. Unreadable history reads as empty."""
        return sorted(self._load(), key=lambda r: r.date, reverse=True)

    def get(self, date_key: str) -> Optional[DailyRecord]:
        """Get the record for one date, if any."""
        for record in self._load():
            if record.date == date_key:
                return record
        return None

    def upsert(
        self,
        date_key: str,
        total_emissions: float,
        breakdown: Dict[str, float],
        activities: Optional[ActivityInput] = None,
        today: Optional[date] = None,
    ) -> DailyRecord:
        """
        Store the record for a date, replacing any existing one.

        Records older than the retention window (counted back from
        `today`, default clock()) are pruned on every call. The new
        record is returned even if it could not be persisted. When the
        stored history cannot be read, nothing is written.
        """
        record = DailyRecord(
            date=date_key,
            total_emissions_kg=total_emissions,
            breakdown=dict(breakdown),
            activities=activities,
        )

        stored, readable = self._read()
        if not readable:
            logger.warning(f"Record history unreadable, not saving {date_key}")
            return record

        records = [r for r in stored if r.date != date_key]
        records.append(record)
        self._save(self._prune(records, today))
        return record

    def replace_all(self, records: List[DailyRecord]) -> List[DailyRecord]:
        """Overwrite the whole history (deduplicated by date, last wins)."""
        by_date = {r.date: r for r in records}
        kept = self._prune(list(by_date.values()))
        self._save(kept)
        return kept

    def clear(self):
        """Remove all stored records."""
        try:
            self.blob_store.remove(TRENDS_KEY)
        except StorageError as e:
            logger.warning(f"Could not clear record history: {e}")

    # Helper methods

    def _prune(self, records: List[DailyRecord], today: Optional[date] = None) -> List[DailyRecord]:
        today = today or self.clock()
        cutoff = (today - timedelta(days=self.RETENTION_DAYS)).isoformat()
        kept = [r for r in records if r.date >= cutoff]
        kept.sort(key=lambda r: r.date, reverse=True)
        return kept

    def _load(self) -> List[DailyRecord]:
        return self._read()[0]

    def _read(self) -> Tuple[List[DailyRecord], bool]:
        """
        Returns (records, readable).

        readable is False only when the store itself failed; corrupt
        or malformed history reads as empty and may be overwritten.
        """
        try:
            raw = self.blob_store.get(TRENDS_KEY)
        except CorruptValueError as e:
            logger.warning(f"Discarding corrupt record history: {e}")
            return [], True
        except StorageError as e:
            logger.warning(f"Error loading record history: {e}")
            return [], False

        if raw is None:
            return [], True

        try:
            return [DailyRecord.from_dict(item) for item in raw], True
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed record history: {e}")
            return [], True

    def _save(self, records: List[DailyRecord]):
        try:
            self.blob_store.set(TRENDS_KEY, [r.to_dict() for r in records])
        except StorageError as e:
            logger.warning(f"Error saving record history: {e}")
