"""Accumulation of extracted records for one query point."""

from typing import Callable, Iterable, Optional

from mapscraper.utils.logger import get_logger

from .models import ExtractedRecord

logger = get_logger(__name__)

RecordWriter = Callable[[list[ExtractedRecord]], object]


class ResultAggregator:
    """Append-only result set for a single query point.

    Records are held in memory until ``flush`` hands the complete list to
    every writer and then discards it. Nothing is written before the card
    loop of the point has finished.
    """

    def __init__(self, writers: Optional[Iterable[RecordWriter]] = None, label: str = ""):
        self.writers = list(writers or [])
        self.label = label
        self._records: list[ExtractedRecord] = []

    def add(self, record: ExtractedRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[ExtractedRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> list[ExtractedRecord]:
        """Forward all records to the writers and reset the result set.

        Returns:
            The records that were flushed
        """
        records = self._records
        self._records = []

        for writer in self.writers:
            writer(records)

        logger.info(f"Flushed {len(records)} records for {self.label or 'query point'}")
        return records
