"""Shared pytest fixtures for ingestion tests."""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import pytest
import structlog

from servers.comp_ingest.models import EventRecord
from servers.comp_ingest.sources.base import SourceAdapter
from servers.comp_ingest.storage import InMemoryCatalogStore


class StubAdapter(SourceAdapter):
    """Adapter serving canned titles, one per line, without network access."""

    kind = "stub"

    def __init__(
        self,
        source_id: str,
        titles: Optional[list[str]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        **kwargs,
    ):
        super().__init__(source_id, f"https://{source_id.lower()}.example/events", **kwargs)
        self.titles = titles or []
        self.error = error
        self.delay = delay
        self.fetch_count = 0

    async def fetch(self) -> str:
        self.fetch_count += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return "\n".join(self.titles)

    def extract(self, raw, fetched_at=None) -> list[EventRecord]:
        fetched_at = self._fetch_time(fetched_at)
        return [
            self.make_candidate(line.strip(), fetched_at)
            for line in raw.splitlines()
            if line.strip()
        ]


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration done by the CLI under test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def stub_adapter():
    """Provide the StubAdapter class."""
    return StubAdapter


@pytest.fixture
def fetched_at() -> datetime:
    return datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def hku_record() -> EventRecord:
    """An already catalogued HKU event with enrichment."""
    return EventRecord(
        title="HKU Datathon 2024 [HKU]",
        occurs_at=datetime(2025, 2, 1, tzinfo=timezone.utc),
        host="HKU",
        provenance=["HKU"],
        description="Two-day data challenge for undergraduates",
        location="HKU Main Campus",
        status="upcoming",
    )


@pytest.fixture
def store() -> InMemoryCatalogStore:
    return InMemoryCatalogStore()


@pytest.fixture
def card_page_html() -> str:
    """Competition page in the HKU card layout."""
    return """
    <html><body>
      <div class="card-blk">
        <a class="card-blk__item" href="/competition/1">
          <p class="card-blk__title"> Global Case Competition </p>
        </a>
        <a class="card-blk__item" href="/competition/2">
          <p class="card-blk__title">HKU Datathon 2024</p>
        </a>
        <a class="card-blk__item" href="/competition/3">
          <span>Card without a title</span>
        </a>
        <a class="card-blk__item" href="/competition/4">
          <p class="card-blk__title">   </p>
        </a>
      </div>
    </body></html>
    """


@pytest.fixture
def table_page_html() -> str:
    """Announcement table in the HKUST layout."""
    return """
    <html><body>
      <table>
        <tr><td><h3>Datathon 2024</h3></td></tr>
        <tr><td><h3>Library closure notice</h3></td></tr>
        <tr><td><h3>Global Business CASE Challenge</h3></td></tr>
        <tr><td><p>Hackathon mentioned outside a heading</p></td></tr>
      </table>
    </body></html>
    """


@pytest.fixture
def ctftime_payload() -> str:
    """CTFTime-style event list with valid and malformed items."""
    return json.dumps([
        {
            "title": "Midnight Sun CTF",
            "start": "2025-03-01T12:00:00+00:00",
            "finish": "2025-03-02T12:00:00+00:00",
            "url": "https://midnightsunctf.example",
            "description": "Jeopardy-style CTF",
            "max_team_size": 5,
        },
        {
            "title": "No Finish CTF",
            "start": "2025-03-05T12:00:00+00:00",
        },
        {
            "title": "Fuzzy Date CTF",
            "start": "sometime next spring",
            "finish": "2025-04-02T12:00:00+00:00",
            "url": "",
            "description": "",
            "max_team_size": "4",
        },
        "not an object",
    ])
