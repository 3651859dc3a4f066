"""Reingest planner: keeps the response under Firehose's size limit.

Walks the result records in order, projecting the size of the response
envelope. Once the projection passes MAX_DATA_SIZE, every remaining Ok record
is demoted to Dropped and its original bytes are queued for reingestion in
batches of at most MAX_BATCH_SIZE records.
"""

import logging
from dataclasses import dataclass, field

from firehose_reingest.models import OK, ReingestCandidate, ResultRecord

logger = logging.getLogger(__name__)

# 6000000 instead of 6291456 to leave headroom for envelope overhead we don't count
MAX_DATA_SIZE = 6_000_000

# PutRecords / PutRecordBatch accept at most 500 records per call
MAX_BATCH_SIZE = 500


@dataclass
class ReingestPlan:
    result_records: list[ResultRecord]
    reingest_batches: list[list[ReingestCandidate]] = field(default_factory=list)
    reingest_count: int = 0


def plan(
    result_records: list[ResultRecord],
    candidates: dict[str, ReingestCandidate],
) -> ReingestPlan:
    """Demote records that would overflow the response and batch them for reingest.

    *result_records* is modified in place and returned as part of the plan.
    The projected size is never reset, so demotion is monotonic: after the
    first demoted record, every later Ok record is demoted too. Batches close
    on record count only.
    """
    projected_size = 0
    reingest_count = 0
    pending: list[ReingestCandidate] = []
    batches: list[list[ReingestCandidate]] = []

    for record in result_records:
        # Non-Ok records still cost their id and result in the response
        projected_size += len(record.record_id) + len(record.result)
        if record.result != OK:
            continue

        projected_size += len(record.data)
        if projected_size > MAX_DATA_SIZE:
            record.demote()
            reingest_count += 1
            pending.append(candidates[record.record_id])

        if len(pending) == MAX_BATCH_SIZE:
            batches.append(pending)
            pending = []

    if pending:
        batches.append(pending)

    if reingest_count:
        logger.debug(
            "Projected response size %d exceeds %d; %d record(s) in %d batch(es) to reingest",
            projected_size,
            MAX_DATA_SIZE,
            reingest_count,
            len(batches),
        )

    return ReingestPlan(
        result_records=result_records,
        reingest_batches=batches,
        reingest_count=reingest_count,
    )
