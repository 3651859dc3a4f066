"""Record models for Firehose transformation events and reingestion."""

import base64
import binascii
from dataclasses import dataclass, field, asdict

OK = "Ok"
DROPPED = "Dropped"
PROCESSING_FAILED = "ProcessingFailed"

DATA_MESSAGE = "DATA_MESSAGE"
CONTROL_MESSAGE = "CONTROL_MESSAGE"


@dataclass(frozen=True)
class RawRecord:
    record_id: str
    data: str
    approximate_arrival_timestamp: int = 0
    partition_key: str = ""


@dataclass
class LogEvent:
    id: str
    timestamp: int
    message: str


@dataclass
class DecodedBatch:
    owner: str = ""
    log_group: str = ""
    log_stream: str = ""
    message_type: str = ""
    subscription_filters: list[str] = field(default_factory=list)
    log_events: list[LogEvent] = field(default_factory=list)


@dataclass
class ResultRecord:
    record_id: str
    result: str
    data: str = ""

    def demote(self):
        """Pull an Ok record out of the response so it can be reingested."""
        self.result = DROPPED
        self.data = ""


@dataclass(frozen=True)
class ReingestCandidate:
    data: bytes
    partition_key: str = ""


def raw_record_from_dict(record: dict) -> RawRecord:
    """Build a RawRecord from one entry of a Firehose event's ``records`` list."""
    metadata = record.get("kinesisRecordMetadata") or {}
    return RawRecord(
        record_id=record["recordId"],
        data=record["data"],
        approximate_arrival_timestamp=record.get("approximateArrivalTimestamp", 0),
        partition_key=metadata.get("partitionKey") or "",
    )


def create_reingest_candidate(record: RawRecord, is_source_a_stream: bool) -> ReingestCandidate:
    """Keep the original undecoded bytes; partition keys only matter for streams."""
    try:
        data = base64.b64decode(record.data)
    except binascii.Error:
        # Undecodable records always fail classification, so this is never reingested
        data = b""
    return ReingestCandidate(
        data=data,
        partition_key=record.partition_key if is_source_a_stream else "",
    )


def result_to_dict(record: ResultRecord) -> dict:
    """Convert a ResultRecord to the Firehose response shape."""
    raw = asdict(record)
    return {"recordId": raw["record_id"], "result": raw["result"], "data": raw["data"]}
