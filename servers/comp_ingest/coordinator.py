"""
Ingestion coordinator.

Runs adapters concurrently (one task each) and funnels their candidates
through a single writer task:

    adapter tasks --(source_id, candidates)--> queue --> writer --> store

The writer resolves each candidate against the catalog and either inserts
it or folds its source id into the matched record's provenance. Only the
writer touches the store, so two sources reporting the same event cannot
lose each other's provenance update.

A failing source is recorded and skipped; a storage failure aborts the
remaining writes and propagates.
"""

import asyncio
from datetime import datetime
from typing import Optional

import structlog

from .errors import FetchError
from .matching import MatchEngine
from .models import AdapterFailure, EventRecord, FetchStats, IngestionSummary, utcnow
from .resilience.health import HealthMonitor
from .sources.base import SourceAdapter
from .sources.registry import SourceRegistry
from .storage import CatalogStore

logger = structlog.get_logger()

DEFAULT_FETCH_TIMEOUT = 30.0

# Queue sentinel: no more batches
_DONE = None


class IngestionCoordinator:
    """Runs registered adapters and commits insert-or-merge decisions."""

    def __init__(
        self,
        registry: SourceRegistry,
        store: CatalogStore,
        engine: Optional[MatchEngine] = None,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        health: Optional[HealthMonitor] = None,
    ):
        self.registry = registry
        self.store = store
        self.engine = engine or MatchEngine()
        self.fetch_timeout = fetch_timeout
        self.health = health or HealthMonitor()

    async def run_all(self) -> IngestionSummary:
        """Ingest from every registered source."""
        return await self._run(self.registry.adapters())

    async def run_one(self, source_id: str) -> IngestionSummary:
        """Ingest from a single source.

        Raises:
            AdapterNotFound: If source_id is not registered
        """
        return await self._run([self.registry.get(source_id)])

    async def _run(self, adapters: list[SourceAdapter]) -> IngestionSummary:
        summary = IngestionSummary()
        queue: asyncio.Queue = asyncio.Queue()

        writer = asyncio.create_task(self._write_loop(queue, summary))
        collectors = [
            asyncio.create_task(self._collect(adapter, queue, summary))
            for adapter in adapters
        ]

        try:
            await asyncio.gather(*collectors)
            await queue.put(_DONE)
            await writer
        except BaseException:
            for task in collectors:
                task.cancel()
            writer.cancel()
            raise

        logger.info(
            "ingestion_complete",
            sources=[a.identify() for a in adapters],
            inserted=summary.inserted_count,
            merged=summary.merged_count,
            failed=summary.failed_sources,
        )
        return summary

    async def _collect(
        self,
        adapter: SourceAdapter,
        queue: asyncio.Queue,
        summary: IngestionSummary,
    ) -> None:
        """Fetch and extract one source, then hand its batch to the writer."""
        source_id = adapter.identify()
        started = datetime.now()

        try:
            raw = await asyncio.wait_for(adapter.fetch(), timeout=self.fetch_timeout)
        except FetchError as e:
            self._record_failure(summary, source_id, e.message, "fetch", started)
            return
        except asyncio.TimeoutError:
            message = f"No response within {self.fetch_timeout}s"
            self._record_failure(summary, source_id, message, "timeout", started)
            return
        except Exception as e:
            logger.exception("adapter_crashed", source=source_id)
            self._record_failure(summary, source_id, str(e), "unexpected", started)
            return

        candidates = adapter.extract(raw, fetched_at=utcnow())

        stats = FetchStats(
            source=source_id,
            count=len(candidates),
            status="success",
            duration_ms=_elapsed_ms(started),
        )
        summary.stats.append(stats)
        self.health.record(stats)
        logger.info("adapter_fetched", source=source_id, candidates=len(candidates))

        await queue.put((source_id, candidates))

    def _record_failure(
        self,
        summary: IngestionSummary,
        source_id: str,
        message: str,
        kind: str,
        started: datetime,
    ) -> None:
        failure = AdapterFailure(source_id=source_id, error=message, kind=kind)
        stats = FetchStats(
            source=source_id,
            count=0,
            status="error",
            duration_ms=_elapsed_ms(started),
            error_message=message,
        )
        summary.failures.append(failure)
        summary.stats.append(stats)
        health = self.health.record(stats, failure)
        logger.warning(
            "adapter_fetch_failed",
            source=source_id,
            kind=kind,
            error=message,
            consecutive_failures=health.consecutive_failures,
        )

    async def _write_loop(self, queue: asyncio.Queue, summary: IngestionSummary) -> None:
        """Single writer: drain batches until the sentinel arrives."""
        while True:
            batch = await queue.get()
            if batch is _DONE:
                return
            source_id, candidates = batch
            await self._commit_batch(source_id, candidates, summary)

    async def _commit_batch(
        self,
        source_id: str,
        candidates: list[EventRecord],
        summary: IngestionSummary,
    ) -> None:
        """Resolve and persist one source's candidates.

        The catalog snapshot is taken once per batch and kept current with
        the batch's own inserts, so repeated titles within one source fold
        into a single record.
        """
        catalog = await self.store.find_all({})

        for candidate in candidates:
            decision = self.engine.resolve(candidate, catalog)

            if decision.matched and await self._merge(
                decision.existing_id, source_id, catalog
            ):
                summary.merged_count += 1
                continue

            record_id = await self.store.insert(candidate)
            catalog.append(candidate.model_copy(update={"id": record_id}))
            summary.inserted_count += 1
            logger.debug(
                "candidate_inserted", source=source_id, title=candidate.title, id=record_id
            )

    async def _merge(
        self, record_id: str, source_id: str, catalog: list[EventRecord]
    ) -> bool:
        """Union source_id into the stored record's provenance.

        Returns False if the record disappeared since the snapshot; the
        caller then inserts the candidate instead.
        """
        current = await self.store.find_one({"id": record_id})
        if current is None:
            return self._drop_missing(record_id, source_id, catalog)

        provenance = current.with_source(source_id)
        if provenance != current.provenance:
            if not await self.store.update_provenance(record_id, provenance):
                return self._drop_missing(record_id, source_id, catalog)
            logger.info(
                "candidate_merged", id=record_id, title=current.title, provenance=provenance
            )

        for i, record in enumerate(catalog):
            if record.id == record_id:
                catalog[i] = record.model_copy(update={"provenance": provenance})
                break
        return True

    @staticmethod
    def _drop_missing(
        record_id: str, source_id: str, catalog: list[EventRecord]
    ) -> bool:
        logger.warning("merge_target_missing", id=record_id, source=source_id)
        catalog[:] = [r for r in catalog if r.id != record_id]
        return False


def _elapsed_ms(started: datetime) -> int:
    return int((datetime.now() - started).total_seconds() * 1000)
