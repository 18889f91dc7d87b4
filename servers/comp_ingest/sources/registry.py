"""
Source registry.

Maps source ids to adapter instances. Lookups are case-insensitive and
iteration follows registration order. Adapters are built from config
entries, so adding a source never touches the coordinator.
"""

from typing import Any, Iterator

import structlog

from ..errors import AdapterNotFound, ConfigError
from .base import SourceAdapter
from .html_cards import HtmlCardAdapter
from .html_table import HtmlTableAdapter
from .json_api import JsonApiAdapter

logger = structlog.get_logger()

ADAPTER_KINDS: dict[str, type[SourceAdapter]] = {
    HtmlCardAdapter.kind: HtmlCardAdapter,
    HtmlTableAdapter.kind: HtmlTableAdapter,
    JsonApiAdapter.kind: JsonApiAdapter,
}


class SourceRegistry:
    """Registered adapters keyed by lower-cased source id."""

    def __init__(self, adapters: list[SourceAdapter] | None = None):
        self._adapters: dict[str, SourceAdapter] = {}
        for adapter in adapters or []:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        key = adapter.identify().lower()
        if key in self._adapters:
            logger.warning("source_replaced", source=adapter.identify())
        self._adapters[key] = adapter

    def get(self, source_id: str) -> SourceAdapter:
        """Look up an adapter.

        Raises:
            AdapterNotFound: If no adapter is registered under source_id
        """
        try:
            return self._adapters[source_id.lower()]
        except KeyError:
            raise AdapterNotFound(source_id) from None

    def source_ids(self) -> list[str]:
        return [adapter.identify() for adapter in self._adapters.values()]

    def adapters(self) -> list[SourceAdapter]:
        return list(self._adapters.values())

    def __contains__(self, source_id: str) -> bool:
        return source_id.lower() in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)

    def __iter__(self) -> Iterator[SourceAdapter]:
        return iter(self.adapters())


def build_adapter(entry: dict[str, Any], default_timeout: float | None = None) -> SourceAdapter:
    """Construct an adapter from a config entry.

    Entry format:
        {"id": "HKU", "kind": "html_cards", "url": "...", ...adapter kwargs}

    Raises:
        ConfigError: If the kind is unknown or required keys are missing
    """
    options = dict(entry)
    kind = options.pop("kind", None)
    source_id = options.pop("id", None)
    url = options.pop("url", None)

    if kind not in ADAPTER_KINDS:
        raise ConfigError(f"Unknown source kind {kind!r} for source {source_id!r}")
    if not source_id or not url:
        raise ConfigError(f"Source entry needs 'id' and 'url': {entry!r}")

    if default_timeout is not None:
        options.setdefault("timeout", default_timeout)

    try:
        return ADAPTER_KINDS[kind](source_id, url, **options)
    except TypeError as e:
        raise ConfigError(f"Invalid options for source {source_id!r}: {e}") from e


def build_registry(config: dict[str, Any]) -> SourceRegistry:
    """Build a registry from config["sources"]."""
    timeout = config.get("fetch", {}).get("timeout_seconds")
    registry = SourceRegistry()
    for entry in config.get("sources", []):
        if not entry.get("enabled", True):
            continue
        entry = {k: v for k, v in entry.items() if k != "enabled"}
        registry.register(build_adapter(entry, default_timeout=timeout))
    return registry
