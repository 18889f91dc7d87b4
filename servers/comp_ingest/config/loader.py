"""Load configuration from a JSON file and the environment."""

import copy
import json
import os
from pathlib import Path
from typing import Any, Optional

import structlog

from ..errors import ConfigError
from .migrator import get_default_config, migrate_config, validate_config

log = structlog.get_logger(__name__)

STORE_PATH_ENV = "COMP_INGEST_STORE"


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base; nested dicts merge, other values replace."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[str | Path] = None) -> dict[str, Any]:
    """
    Load config, migrating and validating it.

    Args:
        path: JSON config file. Defaults apply when omitted.

    Returns:
        Config dict at the current version

    Raises:
        ConfigError: If the file cannot be read or fails validation
    """
    config = get_default_config()

    if path is not None:
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read config {path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config {path} must contain a JSON object")
        config = _deep_merge(config, migrate_config(raw))
        log.info("config_loaded", path=str(path))

    store_path = os.environ.get(STORE_PATH_ENV)
    if store_path:
        config["storage"]["path"] = store_path

    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors))

    return config
