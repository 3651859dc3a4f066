"""CloudWatch Logs decoding and newline-delimited JSON reshaping.

CloudWatch Logs subscription filters deliver records that look like::

    {
        "messageType": "DATA_MESSAGE",
        "owner": "123456789012",
        "logGroup": "log_group_name",
        "logStream": "log_stream_name",
        "subscriptionFilters": ["subscription_filter_name"],
        "logEvents": [
            {"id": "0123...", "timestamp": 1510109208016, "message": "log message 1"}
        ]
    }

gzip-compressed and then base64-encoded.
"""

import base64
import binascii
import gzip
import json
import logging
import math
import re
import zlib

from firehose_reingest.models import DecodedBatch, LogEvent

logger = logging.getLogger(__name__)


# Valid pairs are already joined by json.loads, so any surrogate left is unpaired
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant {name}")


def _escape_surrogate(match: re.Match) -> str:
    return "\\u%04x" % ord(match.group())


def _as_js_number(value):
    """Render floats the way JSON.stringify does: null if non-finite, no ".0" if whole."""
    if not isinstance(value, float):
        return value
    if not math.isfinite(value):
        return None
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def decode_record(data: str) -> DecodedBatch:
    """Decode one base64 gzip record into a DecodedBatch.

    Never raises: anything that cannot be decoded yields an empty batch whose
    message type matches neither DATA_MESSAGE nor CONTROL_MESSAGE.
    """
    try:
        payload = json.loads(
            gzip.decompress(base64.b64decode(data)).decode("utf-8"),
            parse_constant=_reject_constant,
        )
        return DecodedBatch(
            owner=payload.get("owner", ""),
            log_group=payload.get("logGroup", ""),
            log_stream=payload.get("logStream", ""),
            message_type=payload.get("messageType", ""),
            subscription_filters=list(payload.get("subscriptionFilters") or []),
            log_events=[
                LogEvent(id=e.get("id", ""), timestamp=e.get("timestamp", 0), message=e.get("message", ""))
                for e in payload.get("logEvents") or []
            ],
        )
    except (binascii.Error, OSError, EOFError, zlib.error, UnicodeDecodeError,
            ValueError, AttributeError, TypeError) as exc:
        logger.warning("Could not decode data: %s", exc)
    return DecodedBatch()


def transform_log_event(batch: DecodedBatch, event: LogEvent) -> str:
    """Render a single log event as one compact JSON line (trailing newline included)."""
    log = {
        "awsAccountId": batch.owner,
        "logGroup": batch.log_group,
        "logStream": batch.log_stream,
        "id": event.id,
        "message": _as_js_number(event.message),
        "timestamp": _as_js_number(event.timestamp),
    }
    line = json.dumps(log, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    return _LONE_SURROGATE.sub(_escape_surrogate, line) + "\n"


def transform_log_events(batch: DecodedBatch) -> str:
    """Concatenate every event of *batch* as NDJSON, preserving event order."""
    return "".join(transform_log_event(batch, event) for event in batch.log_events)
