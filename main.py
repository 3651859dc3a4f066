"""Local runner — feeds a Firehose transformation event file through the pipeline."""

import argparse
import json
import logging
import sys

from firehose_reingest.config import load_config
from firehose_reingest.pipeline import TransformationPipeline
from lambda_function import configure_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Firehose Log Reingest local runner")
    parser.add_argument("event_file", help="Path to a Firehose transformation event (JSON)")
    parser.add_argument(
        "--no-reingest",
        action="store_true",
        default=False,
        help="Plan reingestion but do not publish anything",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    config = load_config()
    configure_logging(config.log_level)
    logger = logging.getLogger(__name__)

    with open(args.event_file, "r", encoding="utf-8") as f:
        event = json.load(f)

    logger.info(
        "Processing %d record(s) from %s", len(event.get("records", [])), args.event_file
    )
    pipeline = TransformationPipeline(config, reingest_enabled=not args.no_reingest)
    response = pipeline.process_event(event)

    json.dump(response, sys.stdout, indent=2)
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
