"""Batched ingestion of postal codes and points-of-interest with duplicate suppression."""

import logging
import time
from datetime import timedelta
from typing import Callable, List, Optional, Sequence

from locator.models import IngestionOutcome, IngestionProgress, Record, RecordKind, kind_of

DEFAULT_BATCH_SIZE = 1000

ProgressCallback = Callable[[IngestionProgress], None]


def chunked(records: Sequence[Record], size: int) -> List[Sequence[Record]]:
    return [records[start:start + size] for start in range(0, len(records), size)]


def _record_kind(records: Sequence[Record]) -> Optional[RecordKind]:
    kinds = {kind_of(record) for record in records}
    if len(kinds) > 1:
        raise ValueError("Cannot ingest a mix of postal codes and points-of-interest in one run")
    return kinds.pop() if kinds else None


class IngestionPipeline:
    """Insert records chunk by chunk, skipping natural keys the store already holds.

    A failing chunk is counted as failed and reported; the run carries on with
    the next chunk. Nothing is retried.
    """

    def __init__(self, store, logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def ingest(
        self,
        records: Sequence[Record],
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> IngestionOutcome:
        if batch_size < 1:
            raise ValueError("batch_size must be a positive integer")

        started = time.perf_counter()
        records = list(records)
        kind = _record_kind(records)
        outcome = IngestionOutcome(total_processed=len(records))
        if kind is None:
            self.logger.info("No records to ingest")
            return outcome

        batches = chunked(records, batch_size)
        progress = IngestionProgress(total_records=len(records), total_batches=len(batches))
        self.logger.info(
            "Starting %s ingestion: %d records in %d batches", kind.value, len(records), len(batches)
        )

        for number, batch in enumerate(batches, start=1):
            progress.current_batch = number
            progress.current_record += len(batch)
            try:
                inserted, skipped = self._ingest_batch(kind, batch)
            except Exception as exc:  # noqa: BLE001
                outcome.failed_count += len(batch)
                progress.failed_count += len(batch)
                outcome.errors.append(f"Error processing batch {number}: {exc}")
                self.logger.error("Error processing %s batch %d: %s", kind.value, number, exc)
            else:
                outcome.success_count += inserted
                outcome.skipped_count += skipped
                progress.success_count += inserted
                progress.skipped_count += skipped
                self.logger.debug(
                    "Batch %d: added %d %s records, skipped %d duplicates",
                    number,
                    inserted,
                    kind.value,
                    skipped,
                )

            if progress_callback is not None:
                progress_callback(progress)

        outcome.duration = timedelta(seconds=time.perf_counter() - started)
        self.logger.info(
            "%s ingestion completed: %d imported, %d skipped, %d failed, duration: %s",
            kind.value,
            outcome.success_count,
            outcome.skipped_count,
            outcome.failed_count,
            outcome.duration,
        )
        return outcome

    def _ingest_batch(self, kind: RecordKind, batch: Sequence[Record]):
        existing = self.store.existing_keys(kind, [record.natural_key for record in batch])

        fresh: List[Record] = []
        seen = set(existing)
        for record in batch:
            key = record.natural_key
            if key in seen:
                continue
            seen.add(key)
            fresh.append(record)

        if fresh:
            self.store.bulk_insert(kind, fresh)
        return len(fresh), len(batch) - len(fresh)

    def clear_by_type(self, kind: RecordKind) -> int:
        self.logger.warning("Clearing all %s records from the store", kind.value)
        deleted = self.store.delete_all(kind)
        self.logger.info("Cleared %d %s records", deleted, kind.value)
        return deleted

    def clear_all(self) -> int:
        deleted = self.clear_by_type(RecordKind.POINT_OF_INTEREST)
        deleted += self.clear_by_type(RecordKind.POSTAL_CODE)
        self.logger.info("Cleared %d records in total", deleted)
        return deleted
