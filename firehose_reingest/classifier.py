"""Per-record verdicts for decoded CloudWatch Logs batches."""

import base64

from firehose_reingest.models import (
    CONTROL_MESSAGE,
    DATA_MESSAGE,
    DROPPED,
    OK,
    PROCESSING_FAILED,
    DecodedBatch,
    ResultRecord,
)
from firehose_reingest.planner import MAX_DATA_SIZE
from firehose_reingest.transformer import transform_log_events


def classify(record_id: str, batch: DecodedBatch) -> ResultRecord:
    """Decide Ok / Dropped / ProcessingFailed for one decoded record.

    Control messages carry no log events and are dropped. Data messages are
    reshaped to NDJSON and base64-encoded; an encoded payload over
    MAX_DATA_SIZE can never fit a response, so it fails along with any
    unrecognised message type.
    """
    if batch.message_type == CONTROL_MESSAGE:
        return ResultRecord(record_id=record_id, result=DROPPED, data="")

    if batch.message_type == DATA_MESSAGE:
        encoded = base64.b64encode(transform_log_events(batch).encode("utf-8")).decode("ascii")
        if len(encoded) <= MAX_DATA_SIZE:
            return ResultRecord(record_id=record_id, result=OK, data=encoded)

    return ResultRecord(record_id=record_id, result=PROCESSING_FAILED, data="")
