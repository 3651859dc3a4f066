"""Shared pytest fixtures for the firehose-log-reingest test suite."""

import base64
import gzip
import json

import pytest

from firehose_reingest.config import Config

STREAM_ARN = "arn:aws:kinesis:us-east-1:123456789012:stream/source-stream"
DELIVERY_ARN = "arn:aws:firehose:us-east-1:123456789012:deliverystream/delivery-stream"


def encode_cw_payload(payload: dict) -> str:
    """gzip + base64 a CloudWatch Logs subscription payload, as Firehose delivers it."""
    return base64.b64encode(gzip.compress(json.dumps(payload).encode("utf-8"))).decode("ascii")


def make_cw_payload(message_type: str = "DATA_MESSAGE", messages=("log message 1",)) -> dict:
    return {
        "messageType": message_type,
        "owner": "123456789012",
        "logGroup": "log_group_name",
        "logStream": "log_stream_name",
        "subscriptionFilters": ["subscription_filter_name"],
        "logEvents": [
            {"id": f"event-{i}", "timestamp": 1510109208016 + i, "message": m}
            for i, m in enumerate(messages)
        ],
    }


def make_event_record(record_id: str, payload: dict, partition_key: str | None = None) -> dict:
    record = {
        "recordId": record_id,
        "approximateArrivalTimestamp": 1510254471091,
        "data": encode_cw_payload(payload),
    }
    if partition_key is not None:
        record["kinesisRecordMetadata"] = {
            "partitionKey": partition_key,
            "shardId": "shardId-000000000000",
            "approximateArrivalTimestamp": 1510254471091,
            "sequenceNumber": "sequenceNumber",
            "subsequenceNumber": "",
        }
    return record


class FakeSink:
    """Stands in for a Kinesis/Firehose sink.

    *outcomes* is consumed one entry per call: an Exception instance is raised,
    a list of error codes (None for success) becomes the per-record response.
    Once exhausted, every call succeeds.
    """

    def __init__(self, outcomes=None):
        self._outcomes = list(outcomes or [])
        self.calls: list[list] = []

    def put_records(self, records):
        self.calls.append(list(records))
        if not self._outcomes:
            return [{"SequenceNumber": "1"} for _ in records]
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        responses = []
        for code in outcome:
            if code:
                responses.append({"ErrorCode": code, "ErrorMessage": "failure"})
            else:
                responses.append({"SequenceNumber": "1"})
        return responses


@pytest.fixture
def config() -> Config:
    return Config(max_retries=2, reingest_workers=2)


@pytest.fixture
def data_payload() -> dict:
    return make_cw_payload()


@pytest.fixture
def firehose_event(data_payload) -> dict:
    return {
        "invocationId": "invocation-1",
        "deliveryStreamArn": DELIVERY_ARN,
        "region": "us-east-1",
        "records": [make_event_record(f"record-{i}", data_payload) for i in range(3)],
    }


@pytest.fixture
def kinesis_event(data_payload) -> dict:
    return {
        "invocationId": "invocation-2",
        "deliveryStreamArn": DELIVERY_ARN,
        "sourceKinesisStreamArn": STREAM_ARN,
        "region": "us-east-1",
        "records": [
            make_event_record(f"record-{i}", data_payload, partition_key=f"pk-{i}")
            for i in range(3)
        ],
    }
