"""Per-source health, fed by the ingestion coordinator after every adapter run."""

from typing import Any, Optional

import structlog

from ..models import AdapterFailure, FetchStats, SourceHealth, utcnow

logger = structlog.get_logger()


class HealthMonitor:
    """Keep the latest run outcome of each source across ingestion runs.

    A summary only covers one run; this survives between runs so repeated
    failures of a listing site show up as a growing failure streak, and
    the time of the last good fetch is kept while a source is failing.
    """

    def __init__(self):
        self._sources: dict[str, SourceHealth] = {}

    def record(
        self, stats: FetchStats, failure: Optional[AdapterFailure] = None
    ) -> SourceHealth:
        """Record one adapter run.

        Args:
            stats: Fetch statistics of the run
            failure: The run's failure, or None if it succeeded

        Returns:
            The source's updated health entry
        """
        previous = self._sources.get(stats.source)
        now = utcnow()

        if failure is None:
            health = SourceHealth(
                source=stats.source,
                healthy=True,
                last_run=now,
                last_success=now,
                candidate_count=stats.count,
                duration_ms=stats.duration_ms,
            )
            if previous is not None and not previous.healthy:
                logger.info(
                    "source_recovered",
                    source=stats.source,
                    after_failures=previous.consecutive_failures,
                )
        else:
            health = SourceHealth(
                source=stats.source,
                healthy=False,
                last_run=now,
                last_success=previous.last_success if previous else None,
                duration_ms=stats.duration_ms,
                consecutive_failures=(previous.consecutive_failures if previous else 0) + 1,
                failure_kind=failure.kind,
                last_error=failure.error,
            )

        self._sources[stats.source] = health
        return health

    def report(self) -> dict[str, Any]:
        """Health of every source seen so far, with a summary."""
        failing = [s for s, h in self._sources.items() if not h.healthy]
        total = len(self._sources)

        return {
            "checked_at": utcnow().isoformat(),
            "summary": {
                "healthy": total - len(failing),
                "unhealthy": len(failing),
                "total": total,
                "failing": failing,
            },
            "sources": {
                source: health.model_dump(mode="json")
                for source, health in self._sources.items()
            },
        }
