"""
Catalog storage interface and reference implementations.

The pipeline talks to storage only through CatalogStore:
- find_all(filter) / find_one(filter): field-equality filters, {} matches all
- insert(record) -> assigned id
- update_provenance(id, provenance) -> False if the record is gone
- count(filter), delete(id)

Iteration order is insertion order; MatchEngine's first-match rule
depends on it being stable.
"""

import asyncio
import json
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError

from .errors import StorageError
from .models import EventRecord

logger = structlog.get_logger()


def matches_filter(record: EventRecord, query: dict[str, Any]) -> bool:
    """True if every filter field equals the record's value."""
    for field, expected in query.items():
        if getattr(record, field, None) != expected:
            return False
    return True


class CatalogStore(ABC):
    """Document store holding EventRecords keyed by an opaque id."""

    @abstractmethod
    async def find_all(self, query: Optional[dict[str, Any]] = None) -> list[EventRecord]:
        """All records matching the filter, in insertion order."""

    async def find_one(self, query: Optional[dict[str, Any]] = None) -> Optional[EventRecord]:
        records = await self.find_all(query)
        return records[0] if records else None

    @abstractmethod
    async def insert(self, record: EventRecord) -> str:
        async with self._lock:
            record_id = uuid.uuid4().hex
            staged = dict(self._records)
            staged[record_id] = record.model_copy(update={"id": record_id}, deep=True)
            await self._commit(staged)
        return record_id

    async def update_provenance(self, record_id: str, provenance: list[str]) -> bool:
        async with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                return False
            try:
                updated = EventRecord.model_validate(
                    {**existing.model_dump(), "provenance": provenance}
                )
            except ValidationError as e:
                raise StorageError(f"Invalid provenance for {record_id}: {e}") from e
            staged = dict(self._records)
            staged[record_id] = updated
            await self._commit(staged)
        return True

    async def delete(self, record_id: str) -> bool:
        async with self._lock:
            if record_id not in self._records:
                return False
            staged = {k: v for k, v in self._records.items() if k != record_id}
            await self._commit(staged)
        return True

    async def _commit(self, staged: dict[str, EventRecord]) -> None:
        """Persist the staged catalog, then make it visible.

        If persisting raises, the visible catalog is left unchanged.
        """
        await self._persist(staged)
        self._records = staged

    async def _persist(self, records: dict[str, EventRecord]) -> None:
        """Hook for subclasses that write through to durable storage."""


class JsonFileCatalogStore(InMemoryCatalogStore):
    """In-memory store written through to a JSON file after every change."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        super().__init__(self._load())
        logger.info("catalog_loaded", path=str(self.path), records=len(self._records))

    def _load(self) -> list[EventRecord]:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return [EventRecord.model_validate(item) for item in data]
        except (OSError, ValueError, TypeError) as e:
            raise StorageError(f"Cannot read catalog {self.path}: {e}") from e

    async def _persist(self, records: dict[str, EventRecord]) -> None:
        payload = [record.model_dump(mode="json") for record in records.values()]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"Cannot write catalog {self.path}: {e}") from e
