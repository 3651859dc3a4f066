"""Metrics collector — thread-safe counters for one transformation invocation."""

import threading
import time
import logging

from firehose_reingest.models import DROPPED, OK, PROCESSING_FAILED

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Counts verdicts and reingest activity.

    Publish workers report from their own threads, so every update takes the lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._results: dict = {OK: 0, DROPPED: 0, PROCESSING_FAILED: 0}
        self._reingested_records: int = 0
        self._batches_published: int = 0
        self._batches_failed: int = 0
        self._failed_records: int = 0
        self._put_calls: int = 0
        self._publish_times: list[float] = []
        self._start_time = time.monotonic()

    def record_results(self, results) -> None:
        """Tally the final verdict of every result record."""
        with self._lock:
            for record in results:
                self._results[record.result] = self._results.get(record.result, 0) + 1

    def record_batch(self, batch_size: int, put_calls: int, publish_time_ms: float) -> None:
        """Record a batch that was fully reingested.

        Args:
            batch_size: Number of records in the batch.
            put_calls: Bulk put calls it took, retries included.
            publish_time_ms: Wall time spent publishing, in milliseconds.
        """
        with self._lock:
            self._batches_published += 1
            self._reingested_records += batch_size
            self._put_calls += put_calls
            self._publish_times.append(publish_time_ms)

    def record_failed_batch(self, batch_size: int) -> None:
        with self._lock:
            self._batches_failed += 1
            self._failed_records += batch_size

    def snapshot(self) -> dict:
        """Return a point-in-time snapshot of all collected metrics."""
        with self._lock:
            publish_times = list(self._publish_times)
            avg_publish = (
                sum(publish_times) / len(publish_times) if publish_times else 0.0
            )
            return {
                "results": dict(self._results),
                "reingested_records": self._reingested_records,
                "batches_published": self._batches_published,
                "batches_failed": self._batches_failed,
                "failed_records": self._failed_records,
                "put_calls": self._put_calls,
                "avg_publish_time_ms": avg_publish,
                "max_publish_time_ms": max(publish_times) if publish_times else 0.0,
                "uptime_seconds": time.monotonic() - self._start_time,
            }
