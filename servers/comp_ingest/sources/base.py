"""
Base class for source adapters.

Every adapter implements:
- identify() -> source id used for provenance
- fetch() -> raw page/API content (async, raises FetchError)
- extract(raw) -> candidate EventRecords (pure, never raises)
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import httpx
import structlog

from ..errors import FetchError
from ..models import EventRecord, utcnow

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 30.0

DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; CompCatalog/1.0)"
}


class SourceAdapter(ABC):
    """A single external listing site."""

    kind = "base"

    def __init__(
        self,
        source_id: str,
        url: str,
        tag: Optional[str] = None,
        host: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        verify_ssl: bool = True,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        """Initialize adapter.

        Args:
            source_id: Identifier recorded in provenance (e.g. "HKUST")
            url: Listing page or API endpoint
            tag: Bracketed suffix appended to titles (defaults to source_id)
            host: Organizer reported on records (defaults to source_id)
            timeout: HTTP timeout in seconds
            verify_ssl: Verify TLS certificates
            params: Query parameters sent with the request
            headers: Extra request headers
        """
        self.source_id = source_id
        self.url = url
        self.tag = tag or source_id
        self.host = host or source_id
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.params = params or {}
        self.headers = {**DEFAULT_HEADERS, **(headers or {})}

    def identify(self) -> str:
        return self.source_id

    async def fetch(self) -> str:
        """Download the raw listing.

        Raises:
            FetchError: On HTTP status errors, transport errors or timeouts
        """
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, verify=self.verify_ssl
            ) as client:
                response = await client.get(
                    self.url,
                    params=self.params or None,
                    headers=self.headers,
                    follow_redirects=True,
                )
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as e:
            raise FetchError(self.source_id, f"HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise FetchError(self.source_id, f"Timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise FetchError(self.source_id, f"Request failed: {e}") from e

    @abstractmethod
    def extract(
        self, raw: str | bytes, fetched_at: Optional[datetime] = None
    ) -> list[EventRecord]:
        """Parse raw content into candidates, skipping malformed items."""

    def tag_title(self, title: str) -> str:
        return f"{title} [{self.tag}]"

    def make_candidate(
        self,
        title: str,
        occurs_at: datetime,
        **enrichment: Any,
    ) -> EventRecord:
        """Build a candidate record attributed to this source."""
        enrichment.setdefault("status", "upcoming")
        return EventRecord(
            title=self.tag_title(title),
            occurs_at=occurs_at,
            host=self.host,
            provenance=[self.source_id],
            **enrichment,
        )

    @staticmethod
    def _fetch_time(fetched_at: Optional[datetime]) -> datetime:
        return fetched_at or utcnow()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_id={self.source_id!r}, url={self.url!r})"
