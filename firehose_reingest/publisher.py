"""Reingest publisher: bulk puts into Kinesis or Firehose with bounded retry.

Each attempt sends every record still outstanding in one bulk call. Records
that fail in-band are retried on their own; a failed call retries the whole
set. There is no delay between attempts.
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from firehose_reingest.models import ReingestCandidate

logger = logging.getLogger(__name__)


class PublishError(Exception):
    """Raised when records are still failing after the last retry."""


class KinesisStreamSink:
    """PutRecords against a Kinesis Data Stream. Partition keys are required."""

    def __init__(self, stream_name: str, region: str, client=None):
        self.stream_name = stream_name
        self.region = region
        self._client = client or boto3.client("kinesis", region_name=region)

    def put_records(self, records: list[ReingestCandidate]) -> list[dict]:
        response = self._client.put_records(
            StreamName=self.stream_name,
            Records=[{"Data": r.data, "PartitionKey": r.partition_key} for r in records],
        )
        return response.get("Records", [])


class FirehoseDeliverySink:
    """PutRecordBatch against a Firehose delivery stream. Partition keys are ignored."""

    def __init__(self, stream_name: str, region: str, client=None):
        self.stream_name = stream_name
        self.region = region
        self._client = client or boto3.client("firehose", region_name=region)

    def put_records(self, records: list[ReingestCandidate]) -> list[dict]:
        response = self._client.put_record_batch(
            DeliveryStreamName=self.stream_name,
            Records=[{"Data": r.data} for r in records],
        )
        return response.get("RequestResponses", [])


def put_records_with_retry(sink, records: list[ReingestCandidate], max_retries: int, attempt: int = 0) -> int:
    """Put *records* through *sink*, retrying only the failures.

    Makes at most ``max_retries - attempt + 1`` calls. Returns the number of
    calls made. Raises PublishError once retries are exhausted.
    """
    calls = 0
    while True:
        calls += 1
        failed: list[ReingestCandidate] = []
        try:
            responses = sink.put_records(records)
            codes = []
            for record, response in zip(records, responses):
                code = response.get("ErrorCode")
                if code:
                    codes.append(code)
                    failed.append(record)
            error_message = "Individual error codes: %s" % ",".join(codes)
        except (ClientError, BotoCoreError) as exc:
            error_message = str(exc)
            failed = list(records)

        if not failed:
            return calls

        if attempt < max_retries:
            logger.info(
                "Some records failed while calling PutRecords, retrying. %s",
                error_message,
            )
            records = failed
            attempt += 1
            continue

        message = "Could not put records after %d attempts. %s" % (max_retries, error_message)
        logger.warning("%s", message)
        raise PublishError(message)


def put_records_to_kinesis_stream(
    stream_name: str,
    region: str,
    records: list[ReingestCandidate],
    max_retries: int,
    attempt: int = 0,
    client=None,
) -> int:
    """Reingest *records* into a Kinesis Data Stream."""
    sink = KinesisStreamSink(stream_name, region, client=client)
    return put_records_with_retry(sink, records, max_retries, attempt)


def put_records_to_firehose_stream(
    stream_name: str,
    region: str,
    records: list[ReingestCandidate],
    max_retries: int,
    attempt: int = 0,
    client=None,
) -> int:
    """Reingest *records* into a Firehose delivery stream."""
    sink = FirehoseDeliverySink(stream_name, region, client=client)
    return put_records_with_retry(sink, records, max_retries, attempt)
