"""
Pydantic models for catalog data structures.

These models define the core data types used throughout the pipeline:
- EventRecord: A competition/hackathon/CTF listing with its provenance
- MatchDecision: Result of resolving a candidate against the catalog
- IngestionSummary: Counts and failures from an ingestion run
- SourceHealth: Outcome of a source's most recent adapter run
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def union_provenance(provenance: list[str], source_id: str) -> list[str]:
    """Append a source id unless an equal id (ignoring case) is already present."""
    known = {s.lower() for s in provenance}
    if source_id.lower() in known:
        return list(provenance)
    return [*provenance, source_id]


class EventRecord(BaseModel):
    """A single catalog entry, or a freshly scraped candidate when id is unset."""

    # Assigned by storage on first persistence
    id: Optional[str] = None

    # Display name, may end with a source tag like "[HKU]"
    title: str = Field(min_length=1)

    # Best-effort; adapters default this to fetch time
    occurs_at: datetime = Field(default_factory=utcnow)

    host: str

    # Ordered set of source ids that reported this event
    provenance: list[str] = Field(min_length=1)

    # Enrichment
    description: Optional[str] = None
    registration_deadline: Optional[datetime] = None
    location: Optional[str] = None
    registration_link: Optional[str] = None
    max_participants: Optional[int] = None
    status: Optional[str] = None  # upcoming, active, completed, cancelled

    @field_validator("occurs_at", "registration_deadline")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are taken to be UTC
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_validator("provenance")
    @classmethod
    def _dedupe_provenance(cls, value: list[str]) -> list[str]:
        deduped: list[str] = []
        for source_id in value:
            source_id = source_id.strip()
            if source_id:
                deduped = union_provenance(deduped, source_id)
        if not deduped:
            raise ValueError("provenance must contain at least one source id")
        return deduped

    @property
    def is_candidate(self) -> bool:
        """True until storage has assigned an id."""
        return self.id is None

    def with_source(self, source_id: str) -> list[str]:
        """Return provenance unioned with source_id (unchanged if already present)."""
        return union_provenance(self.provenance, source_id)


class MatchDecision(BaseModel):
    """Outcome of MatchEngine.resolve: no match, or the id of the matched record."""

    existing_id: Optional[str] = None

    @computed_field
    @property
    def matched(self) -> bool:
        return self.existing_id is not None

    @classmethod
    def no_match(cls) -> "MatchDecision":
        return cls()

    @classmethod
    def found(cls, existing_id: str) -> "MatchDecision":
        return cls(existing_id=existing_id)


class FetchStats(BaseModel):
    """Statistics from a single adapter fetch."""

    source: str
    count: int
    status: str  # success, error
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


class AdapterFailure(BaseModel):
    """A source that could not be ingested during a run."""

    source_id: str
    error: str
    kind: str = "fetch"  # fetch, timeout, unexpected


class IngestionSummary(BaseModel):
    """Result of running one or more adapters against the catalog."""

    inserted_count: int = 0
    merged_count: int = 0
    failures: list[AdapterFailure] = Field(default_factory=list)
    stats: list[FetchStats] = Field(default_factory=list)

    @computed_field
    @property
    def failed_sources(self) -> list[str]:
        return [f.source_id for f in self.failures]


class SourceHealth(BaseModel):
    """Latest adapter run for one source, as tracked by HealthMonitor."""

    source: str
    healthy: bool
    last_run: datetime
    last_success: Optional[datetime] = None
    candidate_count: int = 0
    duration_ms: Optional[int] = None
    consecutive_failures: int = 0
    failure_kind: Optional[str] = None  # fetch, timeout, unexpected
    last_error: Optional[str] = None
