"""Transformation pipeline — decodes, classifies, plans, and reingests one Firehose event."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from firehose_reingest.classifier import classify
from firehose_reingest.config import Config
from firehose_reingest.metrics import MetricsCollector
from firehose_reingest.models import (
    ReingestCandidate,
    create_reingest_candidate,
    raw_record_from_dict,
    result_to_dict,
)
from firehose_reingest.planner import ReingestPlan, plan
from firehose_reingest.publisher import (
    FirehoseDeliverySink,
    KinesisStreamSink,
    PublishError,
    put_records_with_retry,
)
from firehose_reingest.transformer import decode_record

logger = logging.getLogger(__name__)


class ReingestError(Exception):
    """Raised when one or more reingest batches could not be published."""


def parse_stream_arn(arn: str) -> tuple[str, str]:
    """Split ``arn:aws:<service>:<region>:<account>:<type>/<name>`` into (name, region)."""
    try:
        region = arn.split(":")[3]
        stream_name = arn.split("/")[1]
    except IndexError:
        raise ValueError(f"Malformed stream ARN: {arn!r}") from None
    return stream_name, region


def default_sink_factory(is_source_a_stream: bool, stream_name: str, region: str):
    if is_source_a_stream:
        return KinesisStreamSink(stream_name, region)
    return FirehoseDeliverySink(stream_name, region)


class TransformationPipeline:
    """Runs one Firehose transformation event end to end.

    The verdicts returned to Firehose are settled before reingestion starts;
    publish failures are logged (and optionally raised) but never alter them.
    """

    def __init__(
        self,
        config: Config,
        sink_factory=default_sink_factory,
        reingest_enabled: bool = True,
    ):
        self._config = config
        self._sink_factory = sink_factory
        self._reingest_enabled = reingest_enabled
        self._metrics = MetricsCollector()

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def process_event(self, event: dict) -> dict:
        """Transform every record of *event* and return the Firehose response."""
        is_source_a_stream = False
        stream_arn = event.get("deliveryStreamArn")
        if event.get("sourceKinesisStreamArn") is not None:
            is_source_a_stream = True
            stream_arn = event["sourceKinesisStreamArn"]
        if not stream_arn:
            raise ValueError("Event has neither sourceKinesisStreamArn nor deliveryStreamArn")

        records = [raw_record_from_dict(r) for r in event.get("records", [])]
        results = []
        candidates: dict[str, ReingestCandidate] = {}

        for record in records:
            if record.record_id in candidates:
                logger.warning("Duplicate recordId %s in event, last one wins", record.record_id)
            batch = decode_record(record.data)
            results.append(classify(record.record_id, batch))
            candidates[record.record_id] = create_reingest_candidate(record, is_source_a_stream)

        reingest_plan = plan(results, candidates)
        self._metrics.record_results(reingest_plan.result_records)

        if self._reingest_enabled:
            self._reingest(reingest_plan, is_source_a_stream, stream_arn, len(records))
        elif reingest_plan.reingest_count:
            logger.info("Reingest disabled, skipping %d record(s)", reingest_plan.reingest_count)

        logger.info("Invocation metrics: %s", self._metrics.snapshot())
        return {"records": [result_to_dict(r) for r in reingest_plan.result_records]}

    # ------------------------------------------------------------------
    # Reingestion
    # ------------------------------------------------------------------

    def _reingest(
        self,
        reingest_plan: ReingestPlan,
        is_source_a_stream: bool,
        stream_arn: str,
        record_count: int,
    ):
        if reingest_plan.reingest_count == 0:
            logger.info("No records to be reingested")
            return

        stream_name, region = parse_stream_arn(stream_arn)
        sink = self._sink_factory(is_source_a_stream, stream_name, region)

        reingested_so_far = 0
        failures: list[PublishError] = []

        with ThreadPoolExecutor(max_workers=max(1, self._config.reingest_workers)) as executor:
            futures = {
                executor.submit(self._publish_batch, sink, batch): batch
                for batch in reingest_plan.reingest_batches
            }

            for future in as_completed(futures):
                batch = futures[future]
                try:
                    future.result()
                except PublishError as exc:
                    failures.append(exc)
                    self._metrics.record_failed_batch(len(batch))
                    logger.error("Failed to reingest batch of %d records: %s", len(batch), exc)
                    continue

                reingested_so_far += len(batch)
                logger.info(
                    "Reingested %d/%d records out of %d",
                    reingested_so_far,
                    reingest_plan.reingest_count,
                    record_count,
                )

        if failures and self._config.raise_on_reingest_failure:
            raise ReingestError(
                f"{len(failures)} of {len(reingest_plan.reingest_batches)} reingest batches failed"
            ) from failures[0]

    def _publish_batch(self, sink, batch: list[ReingestCandidate]):
        start = time.monotonic()
        calls = put_records_with_retry(sink, batch, self._config.max_retries)
        elapsed_ms = (time.monotonic() - start) * 1000
        self._metrics.record_batch(len(batch), calls, elapsed_ms)
