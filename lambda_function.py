"""Lambda entry point for the Firehose log transformation and reingest stage."""

import logging

from firehose_reingest.config import load_config
from firehose_reingest.pipeline import TransformationPipeline

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str):
    """Apply *level* to the root logger, installing a handler only if none exists.

    The Lambda runtime installs its own root handler; local runs get the
    standard format.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)


def handler(event, context):
    config = load_config()
    configure_logging(config.log_level)
    pipeline = TransformationPipeline(config)
    return pipeline.process_event(event)
