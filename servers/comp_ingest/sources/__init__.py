"""
Event source adapters.

Each source implements:
- identify() -> source id recorded in provenance
- fetch() -> raw content, raising FetchError on network/HTTP failure
- extract(raw) -> list[EventRecord], skipping malformed items
"""

from .base import SourceAdapter
from .html_cards import HtmlCardAdapter
from .html_table import HtmlTableAdapter
from .json_api import JsonApiAdapter
from .registry import SourceRegistry, build_adapter, build_registry

__all__ = [
    "SourceAdapter",
    "HtmlCardAdapter",
    "HtmlTableAdapter",
    "JsonApiAdapter",
    "SourceRegistry",
    "build_adapter",
    "build_registry",
]
