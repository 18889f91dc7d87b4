"""
Announcement-table scraper with keyword filtering.

Use Case: Noticeboards that mix competitions with unrelated news
(e.g. HKUST BM Undergrad announcements). Each table row carries a heading;
only headings mentioning a competition-type keyword are kept.
"""

from datetime import datetime
from typing import Any, Optional

import structlog
from bs4 import BeautifulSoup

from ..models import EventRecord
from .base import SourceAdapter

logger = structlog.get_logger()

HKUST_URL = "https://bmundergrad.hkust.edu.hk/announcement"

DEFAULT_KEYWORDS = ["case", "challenge", "competition", "hackathon", "datathon"]


class HtmlTableAdapter(SourceAdapter):
    """Extract row headings that look like competitions."""

    kind = "html_table"

    def __init__(
        self,
        source_id: str,
        url: str,
        row_selector: str = "tr",
        title_selector: str = "h3",
        keywords: Optional[list[str]] = None,
        **kwargs: Any,
    ):
        super().__init__(source_id, url, **kwargs)
        self.row_selector = row_selector
        self.title_selector = title_selector
        self.keywords = [k.lower() for k in (keywords or DEFAULT_KEYWORDS)]

    def is_relevant(self, title: str) -> bool:
        """True if the title mentions any keyword (case-insensitive)."""
        lowered = title.lower()
        return any(keyword in lowered for keyword in self.keywords)

    def extract(
        self, raw: str | bytes, fetched_at: Optional[datetime] = None
    ) -> list[EventRecord]:
        fetched_at = self._fetch_time(fetched_at)
        soup = BeautifulSoup(raw or "", "html.parser")

        candidates: list[EventRecord] = []
        skipped = 0
        for row in soup.select(self.row_selector):
            for heading in row.select(self.title_selector):
                title = heading.get_text(" ", strip=True)
                if not title or not self.is_relevant(title):
                    skipped += 1
                    continue
                candidates.append(self.make_candidate(title, fetched_at))

        logger.debug(
            "rows_extracted",
            source=self.source_id,
            count=len(candidates),
            filtered_out=skipped,
        )
        return candidates
