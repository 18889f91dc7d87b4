"""
Configuration defaults, migration and validation.

Handles version migrations:
- v1 -> v2: Flat timeout/threshold keys moved under fetch/matching,
  sources changed from a list of ids to structured adapter entries
"""

import copy
from typing import Any

import structlog

from ..sources.html_cards import HKU_CARD_SELECTOR, HKU_TITLE_SELECTOR, HKU_URL
from ..sources.html_table import DEFAULT_KEYWORDS, HKUST_URL
from ..sources.json_api import CTFTIME_LIMIT, CTFTIME_URL

log = structlog.get_logger(__name__)

CURRENT_VERSION = 2

SCORER_NAMES = ("charset", "rapidfuzz")

DEFAULT_SOURCES: list[dict[str, Any]] = [
    {
        "id": "HKU",
        "kind": "html_cards",
        "url": HKU_URL,
        "tag": "HKU",
        "host": "HKU",
        "card_selector": HKU_CARD_SELECTOR,
        "title_selector": HKU_TITLE_SELECTOR,
        "verify_ssl": False,
    },
    {
        "id": "HKUST",
        "kind": "html_table",
        "url": HKUST_URL,
        "tag": "UST",
        "host": "HKUST",
        "row_selector": "tr",
        "title_selector": "h3",
        "keywords": DEFAULT_KEYWORDS,
        "verify_ssl": False,
    },
    {
        "id": "CTFTime",
        "kind": "json_api",
        "url": CTFTIME_URL,
        "tag": "CTF",
        "host": "CTFTime",
        "params": {"limit": str(CTFTIME_LIMIT)},
        "default_location": "Online",
    },
]


def get_default_config() -> dict[str, Any]:
    """Return default config for new installations."""
    return {
        "version": CURRENT_VERSION,
        "fetch": {
            "timeout_seconds": 30.0,
        },
        "matching": {
            "scorer": "charset",
            "similarity_threshold": 0.75,
            "word_similarity_threshold": 0.7,
            "common_word_ratio": 0.5,
            "jaccard_ratio": 0.4,
        },
        "storage": {
            "path": None,
        },
        "sources": copy.deepcopy(DEFAULT_SOURCES),
    }


def migrate_config(config: dict[str, Any]) -> dict[str, Any]:
    """
    Migrate config from any version to current.

    Args:
        config: Raw config dict (may be any version)

    Returns:
        Config dict at CURRENT_VERSION
    """
    version = config.get("version", 1)

    # Newer or malformed versions pass through untouched for validate_config to reject
    if not isinstance(version, int) or version >= CURRENT_VERSION:
        return config

    log.info("migrating_config", from_version=version, to_version=CURRENT_VERSION)

    if version == 1:
        config = _migrate_v1_to_v2(config)

    config["version"] = CURRENT_VERSION
    return config


def _migrate_v1_to_v2(config: dict[str, Any]) -> dict[str, Any]:
    """
    Migrate v1 config to v2 format.

    Changes:
    - fetch_timeout -> fetch.timeout_seconds
    - similarity_threshold -> matching.similarity_threshold
    - sources (list[str] of ids) -> sources (list[dict] adapter entries)
    - store_path -> storage.path
    """
    migrated = copy.deepcopy(config)

    if "fetch_timeout" in migrated:
        migrated.setdefault("fetch", {})["timeout_seconds"] = migrated.pop("fetch_timeout")

    if "similarity_threshold" in migrated:
        migrated.setdefault("matching", {})["similarity_threshold"] = migrated.pop(
            "similarity_threshold"
        )

    if "store_path" in migrated:
        migrated.setdefault("storage", {})["path"] = migrated.pop("store_path")

    old_sources = migrated.get("sources")
    if old_sources and all(isinstance(s, str) for s in old_sources):
        wanted = {s.lower() for s in old_sources}
        migrated["sources"] = [
            copy.deepcopy(entry) for entry in DEFAULT_SOURCES
            if entry["id"].lower() in wanted
        ]
        log.info("migrated_source_ids", count=len(migrated["sources"]))

    return migrated


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Validate config and return list of errors.

    Returns:
        List of error messages (empty if valid)
    """
    errors: list[str] = []

    version = config.get("version", 1)
    if not isinstance(version, int):
        errors.append(f"Invalid config version: {version!r}")
    elif version > CURRENT_VERSION:
        errors.append(
            f"Config version {version} is newer than supported version {CURRENT_VERSION}"
        )

    timeout = config.get("fetch", {}).get("timeout_seconds", 30.0)
    if not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append(f"Invalid fetch timeout: {timeout} (must be > 0)")

    matching = config.get("matching", {})
    scorer = matching.get("scorer", "charset")
    if scorer not in SCORER_NAMES:
        errors.append(f"Unknown scorer: {scorer} (expected one of {', '.join(SCORER_NAMES)})")

    for key in (
        "similarity_threshold",
        "word_similarity_threshold",
        "common_word_ratio",
        "jaccard_ratio",
    ):
        value = matching.get(key)
        if value is None:
            continue
        if not isinstance(value, (int, float)) or not 0 <= value <= 1:
            errors.append(f"Invalid matching.{key}: {value} (must be 0-1)")

    seen_ids: set[str] = set()
    for i, entry in enumerate(config.get("sources", [])):
        if not isinstance(entry, dict):
            errors.append(f"sources[{i}] must be an object")
            continue
        for key in ("id", "kind", "url"):
            if not entry.get(key):
                errors.append(f"sources[{i}] missing required field: {key}")
        source_id = str(entry.get("id", "")).lower()
        if source_id and source_id in seen_ids:
            errors.append(f"Duplicate source id: {entry['id']}")
        seen_ids.add(source_id)

    return errors
