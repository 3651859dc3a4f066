"""Configuration module — frozen dataclass loaded from an optional YAML file and env vars."""

import os
import logging
from dataclasses import dataclass

import yaml

logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class Config:
    max_retries: int = 20
    reingest_workers: int = 4
    raise_on_reingest_failure: bool = False
    log_level: str = "INFO"


def load_yaml_config(path: str | None) -> dict:
    """Load settings from a YAML file. Returns empty dict if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded YAML config from %s", path)
        return data
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}


def load_config() -> Config:
    """Build Config from defaults <- YAML file (CONFIG_PATH) <- env vars (highest priority)."""
    yaml_data = load_yaml_config(os.environ.get("CONFIG_PATH"))

    max_retries = yaml_data.get("max_retries", Config.max_retries)
    reingest_workers = yaml_data.get("reingest_workers", Config.reingest_workers)
    raise_on_failure = yaml_data.get("raise_on_reingest_failure", Config.raise_on_reingest_failure)
    log_level = yaml_data.get("log_level", Config.log_level)

    return Config(
        max_retries=int(os.environ.get("REINGEST_MAX_RETRIES", max_retries)),
        reingest_workers=int(os.environ.get("REINGEST_WORKERS", reingest_workers)),
        raise_on_reingest_failure=_parse_bool(
            os.environ.get("RAISE_ON_REINGEST_FAILURE", raise_on_failure)
        ),
        log_level=str(os.environ.get("LOG_LEVEL", log_level)).upper(),
    )
