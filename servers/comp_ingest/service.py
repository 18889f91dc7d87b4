"""
Catalog service: the operations exposed to the transport layer.

Tools:
- list_sources: registered source ids
- run_ingestion: run every source, or one named source
- list_events: paginated catalog listing with status/host/date-range filters
- source_health: latest adapter run per source, kept across runs
"""

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from dateutil import parser as date_parser

from .config.migrator import get_default_config
from .coordinator import IngestionCoordinator
from .matching import MatchEngine
from .resilience.health import HealthMonitor
from .similarity import get_scorer
from .sources.registry import SourceRegistry, build_registry
from .storage import CatalogStore, InMemoryCatalogStore, JsonFileCatalogStore

logger = structlog.get_logger()

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def build_engine(config: dict[str, Any]) -> MatchEngine:
    """MatchEngine configured from config["matching"]."""
    matching = config.get("matching", {})
    scorer = get_scorer(
        matching.get("scorer", "charset"),
        word_threshold=matching.get("word_similarity_threshold", 0.7),
    )
    return MatchEngine(
        scorer=scorer,
        similarity_threshold=matching.get("similarity_threshold", 0.75),
        common_word_ratio=matching.get("common_word_ratio", 0.5),
        jaccard_ratio=matching.get("jaccard_ratio", 0.4),
    )


def build_store(config: dict[str, Any]) -> CatalogStore:
    """JSON-file store when storage.path is set, in-memory otherwise."""
    path = config.get("storage", {}).get("path")
    if path:
        return JsonFileCatalogStore(path)
    return InMemoryCatalogStore()


class CatalogService:
    """Transport-facing facade over the ingestion pipeline."""

    def __init__(
        self,
        registry: SourceRegistry,
        store: CatalogStore,
        engine: Optional[MatchEngine] = None,
        fetch_timeout: float = 30.0,
    ):
        self.registry = registry
        self.store = store
        self.health = HealthMonitor()
        self.coordinator = IngestionCoordinator(
            registry,
            store,
            engine=engine,
            fetch_timeout=fetch_timeout,
            health=self.health,
        )
        self.tools = {
            "list_sources": self.list_sources,
            "run_ingestion": self.run_ingestion,
            "list_events": self.list_events,
            "source_health": self.source_health,
        }

    @classmethod
    def from_config(
        cls, config: Optional[dict[str, Any]] = None, store: Optional[CatalogStore] = None
    ) -> "CatalogService":
        config = config or get_default_config()
        return cls(
            build_registry(config),
            store or build_store(config),
            engine=build_engine(config),
            fetch_timeout=config.get("fetch", {}).get("timeout_seconds", 30.0),
        )

    async def list_sources(self) -> list[str]:
        return self.registry.source_ids()

    async def run_ingestion(self, source_id: Optional[str] = None) -> dict:
        """
        Run ingestion and return the summary.

        Args:
            source_id: Restrict the run to this source

        Raises:
            AdapterNotFound: If source_id is given but not registered
        """
        if source_id:
            summary = await self.coordinator.run_one(source_id)
        else:
            summary = await self.coordinator.run_all()
        return summary.model_dump(mode="json")

    async def list_events(
        self,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
        status: Optional[str] = None,
        host: Optional[str] = None,
        date_from: Optional[datetime | str] = None,
        date_to: Optional[datetime | str] = None,
    ) -> dict:
        """
        Catalog page sorted by event date.

        Args:
            page: 1-based page number (values below 1 are treated as 1)
            limit: Page size, capped at MAX_PAGE_SIZE
            status: Only records with this status
            host: Only records from this host
            date_from: Only events on or after this time (ISO-8601 string or datetime)
            date_to: Only events on or before this time

        Unparseable date bounds are ignored.
        """
        page = max(page, 1)
        limit = max(1, min(limit, MAX_PAGE_SIZE))

        query: dict[str, Any] = {}
        if status:
            query["status"] = status
        if host:
            query["host"] = host

        records = await self.store.find_all(query)

        lower = _date_bound(date_from, "date_from")
        upper = _date_bound(date_to, "date_to")
        if lower is not None:
            records = [r for r in records if r.occurs_at >= lower]
        if upper is not None:
            records = [r for r in records if r.occurs_at <= upper]

        records.sort(key=lambda r: r.occurs_at)
        start = (page - 1) * limit

        return {
            "data": [r.model_dump(mode="json") for r in records[start:start + limit]],
            "page": page,
            "limit": limit,
            "total": len(records),
        }

    async def source_health(self) -> dict:
        return self.health.report()


def _date_bound(value: Optional[datetime | str], name: str) -> Optional[datetime]:
    """Parse a date filter bound as UTC; None if absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            logger.debug("date_filter_ignored", filter=name, value=value)
            return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
